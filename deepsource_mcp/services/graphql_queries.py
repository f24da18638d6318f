from __future__ import annotations

PAGE_INFO_FIELDS = """
pageInfo {
  hasNextPage
  hasPreviousPage
  startCursor
  endCursor
}
"""

VIEWER_PROJECTS_QUERY = """
query {
  viewer {
    email
    accounts {
      edges {
        node {
          login
          repositories(first: 100) {
            edges {
              node {
                name
                defaultBranch
                dsn
                isPrivate
                isActivated
                vcsProvider
              }
            }
          }
        }
      }
    }
  }
}
""".strip()

REPOSITORY_ISSUES_QUERY = f"""
query getRepositoryIssues(
  $login: String!
  $name: String!
  $provider: VCSProvider!
  $analyzerIn: [String!]
  $tags: [String!]
  $path: String
  $first: Int
  $after: String
  $last: Int
  $before: String
) {{
  repository(login: $login, name: $name, vcsProvider: $provider) {{
    issues(
      analyzerIn: $analyzerIn
      tags: $tags
      path: $path
      first: $first
      after: $after
      last: $last
      before: $before
    ) {{
      {PAGE_INFO_FIELDS}
      totalCount
      edges {{
        node {{
          id
          title
          shortcode
          category
          severity
          occurrences(first: 1) {{
            edges {{
              node {{
                id
                status
                issueText
                filePath
                beginLine
                tags
              }}
            }}
          }}
        }}
      }}
    }}
  }}
}}
""".strip()

RUN_FIELDS = """
id
runUid
commitOid
branchName
baseOid
status
createdAt
updatedAt
finishedAt
summary {
  occurrencesIntroduced
  occurrencesResolved
  occurrencesSuppressed
}
repository {
  name
  id
}
"""

REPOSITORY_RUNS_QUERY = f"""
query getRepositoryRuns(
  $login: String!
  $name: String!
  $provider: VCSProvider!
  $first: Int
  $after: String
  $last: Int
  $before: String
) {{
  repository(login: $login, name: $name, vcsProvider: $provider) {{
    runs(first: $first, after: $after, last: $last, before: $before) {{
      edges {{
        node {{
          {RUN_FIELDS}
        }}
      }}
      {PAGE_INFO_FIELDS}
      totalCount
    }}
  }}
}}
""".strip()

RUN_BY_UID_QUERY = f"""
query getRunByUid($runUid: UUID!) {{
  run(runUid: $runUid) {{
    {RUN_FIELDS}
  }}
}}
""".strip()

RUN_BY_COMMIT_QUERY = f"""
query getRunByCommit($commitOid: String!) {{
  runByCommit(commitOid: $commitOid) {{
    {RUN_FIELDS}
  }}
}}
""".strip()

RUN_OCCURRENCES_QUERY = """
query getRunOccurrences($runUid: UUID!, $first: Int) {
  run(runUid: $runUid) {
    checks {
      edges {
        node {
          analyzer {
            shortcode
          }
          occurrences(first: $first) {
            edges {
              node {
                id
                issue {
                  id
                  shortcode
                  title
                  category
                  severity
                }
                path
                beginLine
                issueText
              }
            }
          }
        }
      }
    }
  }
}
""".strip()

QUALITY_METRICS_QUERY = """
query getQualityMetrics(
  $login: String!
  $name: String!
  $provider: VCSProvider!
  $shortcodeIn: [String!]
) {
  repository(login: $login, name: $name, vcsProvider: $provider) {
    id
    metrics(shortcodeIn: $shortcodeIn) {
      shortcode
      name
      description
      isReported
      isThresholdEnforced
      direction
      unit
      items {
        id
        key
        value
        thresholdValue
        thresholdStatus
      }
    }
  }
}
""".strip()

UPDATE_METRIC_THRESHOLD_MUTATION = """
mutation updateMetricThreshold(
  $repositoryId: ID!
  $metricKey: String!
  $metricShortcode: String!
  $thresholdValue: Float
) {
  updateMetricThreshold(
    repositoryId: $repositoryId
    metricKey: $metricKey
    metricShortcode: $metricShortcode
    thresholdValue: $thresholdValue
  ) {
    success
  }
}
""".strip()

UPDATE_METRIC_SETTING_MUTATION = """
mutation updateMetricSetting(
  $repositoryId: ID!
  $metricShortcode: String!
  $isReported: Boolean!
  $isThresholdEnforced: Boolean!
) {
  updateMetricSetting(
    repositoryId: $repositoryId
    metricShortcode: $metricShortcode
    isReported: $isReported
    isThresholdEnforced: $isThresholdEnforced
  ) {
    success
  }
}
""".strip()

DEPENDENCY_VULNERABILITIES_QUERY = f"""
query getDependencyVulnerabilities(
  $login: String!
  $name: String!
  $provider: VCSProvider!
  $first: Int
  $after: String
  $last: Int
  $before: String
) {{
  repository(login: $login, name: $name, vcsProvider: $provider) {{
    dependencyVulnerabilities(
      first: $first
      after: $after
      last: $last
      before: $before
    ) {{
      edges {{
        node {{
          id
          package {{
            id
            ecosystem
            name
          }}
          packageVersion {{
            id
            version
          }}
          vulnerability {{
            id
            identifier
            summary
            details
            severity
            cvssV3BaseScore
            cvssV2BaseScore
            fixedVersions
            aliases
            referenceUrls
          }}
        }}
      }}
      {PAGE_INFO_FIELDS}
      totalCount
    }}
  }}
}}
""".strip()

_COMPLIANCE_REPORT_FIELDS = """
status
categories {
  name
  status
  criticalCount: count(severity: CRITICAL)
  majorCount: count(severity: MAJOR)
  minorCount: count(severity: MINOR)
  total: count
}
"""

COMPLIANCE_REPORTS_QUERY = f"""
query getComplianceReports(
  $login: String!
  $name: String!
  $provider: VCSProvider!
) {{
  repository(login: $login, name: $name, vcsProvider: $provider) {{
    name
    id
    reports {{
      owaspTop10 {{
        {_COMPLIANCE_REPORT_FIELDS}
      }}
      sansTop25 {{
        {_COMPLIANCE_REPORT_FIELDS}
      }}
      misraC {{
        {_COMPLIANCE_REPORT_FIELDS}
      }}
    }}
  }}
}}
""".strip()
