"""Directory aggregation: projects, their teams and team members"""
import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Tuple

from ..models.project import DirectorySnapshot, ProjectInfo, TeamMemberInfo
from ..utils.metrics import MetricsCollector, metrics as default_metrics

logger = logging.getLogger(__name__)


class DirectorySource(Protocol):
    """Anything that can list projects, teams and team members"""

    async def list_projects(self) -> List[Dict]: ...

    async def list_teams(self, project_id: str) -> List[Dict]: ...

    async def list_team_members(self, project_id: str, team_id: str) -> List[Dict]: ...


class DirectoryAggregator:
    """Loads the project/team/member hierarchy and keeps one cross-referenced snapshot.

    A load builds a complete new snapshot before replacing the cached one, so a
    failed load leaves the previous snapshot in place and readers never see a
    half-built directory. Concurrent loads do not wait for each other; the last
    one to finish wins.

    With ``concurrency`` above 1 the projects are fetched concurrently (teams and
    members of one project still in sequence), and merged back in source order,
    which gives the same snapshot as the sequential load.
    """

    def __init__(self, source: DirectorySource, concurrency: int = 1,
                 metrics: Optional[MetricsCollector] = None):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.source = source
        self.concurrency = concurrency
        self.metrics = metrics or default_metrics
        self._snapshot = DirectorySnapshot()

    @property
    def snapshot(self) -> DirectorySnapshot:
        return self._snapshot

    def projects(self) -> List[ProjectInfo]:
        """Cached projects; the list is a copy"""
        return list(self._snapshot.projects.values())

    def team_members(self) -> List[TeamMemberInfo]:
        """Cached team members; the list is a copy"""
        return list(self._snapshot.members.values())

    def members_of(self, project_id: str) -> List[TeamMemberInfo]:
        return self._snapshot.members_of(project_id)

    def projects_of(self, member_id: str) -> List[ProjectInfo]:
        return self._snapshot.projects_of(member_id)

    def find_member(self, display_name: str) -> Optional[TeamMemberInfo]:
        """Look a member up by display name or unique name, case insensitive"""
        wanted = display_name.lower()
        for member in self._snapshot.members.values():
            if member.display_name.lower() == wanted or (member.unique_name or '').lower() == wanted:
                return member
        return None

    async def load(self) -> DirectorySnapshot:
        """Fetch the whole directory and swap it in as the cached snapshot"""
        start_time = datetime.now()
        self.metrics.increment('directory_load_calls')

        try:
            projects = await self.source.list_projects()

            if self.concurrency == 1:
                fetched = [await self._fetch_project_members(p) for p in projects]
            else:
                fetched = await self._fetch_concurrently(projects)
        except Exception:
            self.metrics.increment('directory_load_failures')
            logger.error("Directory load failed, keeping the previous snapshot")
            raise

        snapshot = self._build_snapshot(fetched)
        self._snapshot = snapshot

        duration = (datetime.now() - start_time).total_seconds()
        self.metrics.record('directory_load_duration', duration)
        logger.info(
            f"Loaded {len(snapshot.projects)} projects and {len(snapshot.members)} "
            f"team members in {duration:.2f}s"
        )
        return snapshot

    async def _fetch_concurrently(self, projects: List[Dict]) -> List[Tuple[Dict, List[Dict]]]:
        """Fetch projects under the concurrency limit; the first failure cancels the rest"""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(project):
            async with semaphore:
                return await self._fetch_project_members(project)

        tasks = [asyncio.create_task(bounded(p)) for p in projects]
        try:
            # gather keeps the order of its arguments
            return await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _fetch_project_members(self, project: Dict) -> Tuple[Dict, List[Dict]]:
        """A project with the identities of all its teams, duplicates included"""
        identities = []

        teams = await self.source.list_teams(project['id'])
        for team in teams:
            members = await self.source.list_team_members(project['id'], team['id'])
            logger.debug(f"Project {project.get('name')} team {team.get('name')}: {len(members)} members")
            identities.extend(members)

        return project, identities

    @staticmethod
    def _build_snapshot(fetched: List[Tuple[Dict, List[Dict]]]) -> DirectorySnapshot:
        projects: Dict[str, ProjectInfo] = {}
        members: Dict[str, TeamMemberInfo] = {}
        project_members: Dict[str, List[str]] = {}

        for project, identities in fetched:
            member_ids = project_members.setdefault(project['id'], [])

            for identity in identities:
                member = TeamMemberInfo.from_identity(identity)

                if member.id not in member_ids:
                    member_ids.append(member.id)

                if member.id not in members:
                    members[member.id] = member

            projects[project['id']] = ProjectInfo(
                id=project['id'],
                name=project.get('name', ''),
                description=project.get('description'),
                member_ids=tuple(member_ids)
            )

        # Back references are derived from the finished project lists
        for member_id, member in members.items():
            project_ids = tuple(
                project.id for project in projects.values() if member_id in project.member_ids
            )
            members[member_id] = replace(member, project_ids=project_ids)

        return DirectorySnapshot(projects=projects, members=members)
