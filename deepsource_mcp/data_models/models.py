"""
This module defines the core data models used throughout the application.

Using `dataclass`, it provides structured, type-hinted classes for the
resources exposed by the DeepSource API and for the MCP tool metadata. The
resource clients build these from GraphQL nodes and the tool layer serializes
them with `to_dict`.

The models include:
-   `Project` and `RepositoryInfo`: An accessible DeepSource project.
-   `Issue`: A single issue occurrence.
-   `Run` and `RunSummary`: An analysis run and its occurrence counts.
-   `Metric` and `MetricItem`: A quality metric and its per-key values.
-   `VulnerabilityOccurrence`: A dependency vulnerability found in a project.
-   `ComplianceReport` and `ComplianceCategory`: A security compliance report.
-   `ToolMetadata`: To hold the schema, description, and handler for an MCP tool.
-   `AppContext`: The console shared by the command line interface.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from rich.console import Console

from .types_defs import MCPHandlerType, MCPInputSchema


class _Serializable:
    def to_dict(self) -> dict[str, Any]:
        return asdict(self)  # type: ignore[call-overload]


@dataclass(frozen=True)
class RepositoryInfo(_Serializable):
    url: str
    provider: str
    login: str
    name: str
    is_private: bool = False
    is_activated: bool = False


@dataclass(frozen=True)
class Project(_Serializable):
    """
    A DeepSource project accessible with the configured API key.

    Attributes:
        key (str): The project key (the repository DSN).
        name (str): The repository name.
        repository (RepositoryInfo): The VCS coordinates used by GraphQL queries.
    """

    key: str
    name: str
    repository: RepositoryInfo


@dataclass(frozen=True)
class Issue(_Serializable):
    id: str
    title: str
    shortcode: str
    category: str
    severity: str
    status: str
    issue_text: str = ""
    file_path: str = ""
    line_number: int = 0
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RunSummary(_Serializable):
    occurrences_introduced: int = 0
    occurrences_resolved: int = 0
    occurrences_suppressed: int = 0


@dataclass(frozen=True)
class Run(_Serializable):
    """
    A single analysis run.

    Attributes:
        run_uid (str): The UUID of the run.
        commit_oid (str): The analysed commit.
        branch_name (str): The branch the commit belongs to.
        status (str): The run status, e.g. `SUCCESS` or `FAILURE`.
        created_at (str): ISO-8601 creation timestamp, used to order runs.
    """

    id: str
    run_uid: str
    commit_oid: str
    branch_name: str
    base_oid: str
    status: str
    created_at: str
    updated_at: str = ""
    finished_at: str = ""
    summary: RunSummary = field(default_factory=RunSummary)
    repository_name: str = ""
    repository_id: str = ""


@dataclass(frozen=True)
class MetricItem(_Serializable):
    id: str
    key: str
    threshold: float | None
    latest_value: float
    latest_value_display: str
    threshold_status: str


@dataclass(frozen=True)
class Metric(_Serializable):
    shortcode: str
    name: str
    description: str
    positive_direction: str
    unit: str
    is_reported: bool
    is_threshold_enforced: bool
    items: list[MetricItem] = field(default_factory=list)


@dataclass(frozen=True)
class PackageInfo(_Serializable):
    id: str
    ecosystem: str
    name: str
    version: str


@dataclass(frozen=True)
class VulnerabilityDetails(_Serializable):
    id: str
    identifier: str
    summary: str
    details: str
    severity: str
    cvss_v3_base_score: float | None = None
    cvss_v2_base_score: float | None = None
    aliases: list[str] = field(default_factory=list)
    fixed_versions: list[str] = field(default_factory=list)
    reference_urls: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class VulnerabilityOccurrence(_Serializable):
    id: str
    package: PackageInfo
    vulnerability: VulnerabilityDetails


@dataclass(frozen=True)
class ComplianceCategory(_Serializable):
    name: str
    status: str
    issue_count: int
    critical: int = 0
    major: int = 0
    minor: int = 0


@dataclass(frozen=True)
class ComplianceReport(_Serializable):
    """
    A security compliance report for one project.

    Attributes:
        report_type (str): One of `OWASP_TOP_10`, `SANS_TOP_25` or `MISRA_C`.
        status (str): `PASSING`, `FAILING` or `NOOP`.
        severity_distribution (dict[str, int]): Critical, major and minor
            counts summed over all categories, plus their `total`.
        compliance_score (int): 100 when clean, reduced by 10 per critical,
            5 per major and 1 per minor issue, never below zero.
    """

    report_type: str
    status: str
    title: str
    description: str
    severity_distribution: dict[str, int]
    categories: list[ComplianceCategory]
    compliance_score: int


@dataclass
class ToolMetadata:
    """
    Represents the metadata for a tool exposed over MCP.

    Attributes:
        name (str): The name of the tool.
        description (str): A description of what the tool does.
        input_schema (MCPInputSchema): The schema for the tool's input arguments.
        handler (MCPHandlerType): The asynchronous function that executes the tool's logic.
    """

    name: str
    description: str
    input_schema: MCPInputSchema
    handler: MCPHandlerType


def _default_console() -> Console:
    """Creates a Rich Console that writes to stderr.

    Stdout is reserved for the MCP stdio transport.
    """
    return Console(stderr=True)


@dataclass
class AppContext:
    """
    Holds the global application context.

    Attributes:
        console (Console): The Rich console instance for styled output.
    """

    console: Console = field(default_factory=_default_console)
