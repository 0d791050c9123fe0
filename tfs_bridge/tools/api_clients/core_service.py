"""Core Service API client: projects, teams and team members"""
import logging
from typing import Dict, List, Optional, Tuple

import httpx

from .base import BaseAPIClient

logger = logging.getLogger(__name__)


class CoreServiceClient(BaseAPIClient):
    """Client for the project/team directory of a TFS collection"""

    service_name = "Core"

    def __init__(self, base_url: str, api_key: Optional[str] = None,
                 credentials: Optional[Tuple[str, str]] = None,
                 api_version: str = "5.0", timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(base_url, api_key, credentials, api_version, timeout, transport)

    async def list_projects(self) -> List[Dict]:
        """List all team projects of the collection"""
        projects = await self._get_all("_apis/projects")
        logger.debug(f"Fetched {len(projects)} projects")
        return projects

    async def list_teams(self, project_id: str) -> List[Dict]:
        """List the teams of a project"""
        return await self._get_all(f"_apis/projects/{project_id}/teams")

    async def list_team_members(self, project_id: str, team_id: str) -> List[Dict]:
        """List the identities on a team"""
        return await self._get_all(f"_apis/projects/{project_id}/teams/{team_id}/members")
