from __future__ import annotations

from loguru import logger

from deepsource_mcp.core import constants as cs
from deepsource_mcp.core import logs as ls
from deepsource_mcp.data_models.models import Project
from deepsource_mcp.infrastructure.error_handlers import is_error_with_message
from deepsource_mcp.infrastructure.exceptions import ClassifiedError
from deepsource_mcp.services import graphql_queries as gq
from deepsource_mcp.services.base_client import (
    BaseDeepSourceClient,
    parse_viewer_projects,
)


class ProjectsClient(BaseDeepSourceClient):
    async def list_projects(self) -> list[Project]:
        """Lists every project with a DSN across the viewer's accounts.

        An upstream "NoneType" error means the viewer has no projects and is
        returned as an empty list.
        """
        try:
            data = await self.execute_graphql(gq.VIEWER_PROJECTS_QUERY)
        except ClassifiedError as e:
            if is_error_with_message(e, cs.NONETYPE_MARKER):
                logger.info(ls.PROJECTS_EMPTY_NONETYPE)
                return []
            raise

        projects = parse_viewer_projects(data)
        logger.debug(ls.PROJECTS_FETCHED.format(count=len(projects)))
        return projects

    async def project_exists(self, project_key: str) -> bool:
        try:
            projects = await self.list_projects()
        except ClassifiedError as e:
            logger.error(ls.PROJECT_EXISTS_FAILED.format(key=project_key, error=e))
            return False
        return any(project.key == project_key for project in projects)
