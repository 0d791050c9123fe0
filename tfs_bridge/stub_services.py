"""Stub services for local testing and development"""
import asyncio
import copy
from datetime import datetime
from typing import Dict, List, Any, Optional

from .models.task import (
    TITLE, STATE, TAGS, ACTIVITY, ASSIGNED_TO, WORK_ITEM_TYPE, ITERATION_PATH,
    CHANGED_DATE, ESTIMATED_WORK, COMPLETED_WORK, REMAINING_WORK, HISTORY
)

# Sample data for testing
SAMPLE_PROJECTS = [
    {"id": "proj-001", "name": "Desktop", "description": "Desktop time tracking client"},
    {"id": "proj-002", "name": "Portal", "description": "Customer portal"},
    {"id": "proj-003", "name": "Infrastructure", "description": None}
]

SAMPLE_TEAMS = {
    "proj-001": [
        {"id": "team-001", "name": "Desktop Team"},
        {"id": "team-002", "name": "Desktop QA"}
    ],
    "proj-002": [
        {"id": "team-003", "name": "Portal Team"}
    ],
    "proj-003": []
}

SAMPLE_IDENTITIES = {
    "usr-001": {"id": "usr-001", "displayName": "Alice Novak", "uniqueName": "CORP\\anovak",
                "profileUrl": "http://tfs.local/_api/_common/identityImage?id=usr-001",
                "imageUrl": "http://tfs.local/_api/_common/identityImage?id=usr-001"},
    "usr-002": {"id": "usr-002", "displayName": "Bob Dvorak", "uniqueName": "CORP\\bdvorak",
                "profileUrl": None, "imageUrl": None},
    "usr-003": {"id": "usr-003", "displayName": "Carol Svoboda", "uniqueName": "CORP\\csvoboda",
                "profileUrl": None, "imageUrl": None}
}

SAMPLE_TEAM_MEMBERS = {
    "team-001": ["usr-001", "usr-002"],
    "team-002": ["usr-002", "usr-003"],
    "team-003": ["usr-001"]
}


def _task(task_id: int, title: str, state: str, assigned_to: str, activity: str,
          estimated: Any, completed: Any, remaining: Any, tags: Optional[str] = None) -> Dict:
    return {
        "id": task_id,
        "rev": 1,
        "fields": {
            WORK_ITEM_TYPE: "Task",
            TITLE: title,
            STATE: state,
            ASSIGNED_TO: assigned_to,
            ACTIVITY: activity,
            TAGS: tags,
            ITERATION_PATH: "Desktop\\Sprint 12",
            ESTIMATED_WORK: estimated,
            COMPLETED_WORK: completed,
            REMAINING_WORK: remaining
        }
    }


SAMPLE_WORK_ITEMS = {
    101: _task(101, "Sync timer with server", "In Progress", "Alice Novak", "Development", 8, 2, 6, "sync"),
    102: _task(102, "Tray icon states", "To Do", "Alice Novak", "Design", "4,5", None, "4,5"),
    103: _task(103, "Crash on resume", "Done", "Bob Dvorak", "Development", 3, 3.5, 0, "bug; desktop")
}

SAMPLE_REVISIONS = {
    101: [
        {"rev": 1, "fields": {CHANGED_DATE: "2024-03-04T08:15:00", COMPLETED_WORK: None}},
        {"rev": 2, "fields": {CHANGED_DATE: "2024-03-04T16:40:00", COMPLETED_WORK: "1,5"}},
        {"rev": 3, "fields": {CHANGED_DATE: "2024-03-05T11:05:00", COMPLETED_WORK: 2}}
    ]
}


class StubCoreService:
    """Stub implementation of the project/team directory"""

    def __init__(self, projects: Optional[List[Dict]] = None,
                 teams: Optional[Dict[str, List[Dict]]] = None,
                 team_members: Optional[Dict[str, List[Dict]]] = None):
        self.projects = projects if projects is not None else SAMPLE_PROJECTS
        self.teams = teams if teams is not None else SAMPLE_TEAMS
        if team_members is None:
            team_members = {
                team_id: [SAMPLE_IDENTITIES[i] for i in ids]
                for team_id, ids in SAMPLE_TEAM_MEMBERS.items()
            }
        self.team_members = team_members

    async def list_projects(self) -> List[Dict]:
        await asyncio.sleep(0)  # Simulate network round trip
        return copy.deepcopy(self.projects)

    async def list_teams(self, project_id: str) -> List[Dict]:
        await asyncio.sleep(0)
        return copy.deepcopy(self.teams.get(project_id, []))

    async def list_team_members(self, project_id: str, team_id: str) -> List[Dict]:
        await asyncio.sleep(0)
        return copy.deepcopy(self.team_members.get(team_id, []))


class StubWorkItemTrackingService:
    """Stub implementation of the work item tracking API"""

    def __init__(self, work_items: Optional[Dict[int, Dict]] = None,
                 revisions: Optional[Dict[int, List[Dict]]] = None):
        self.work_items = copy.deepcopy(work_items if work_items is not None else SAMPLE_WORK_ITEMS)
        self.revisions = copy.deepcopy(revisions if revisions is not None else SAMPLE_REVISIONS)
        self.patches: List[Dict[str, Any]] = []

        for work_item_id, history in self.revisions.items():
            if work_item_id in self.work_items and history:
                self.work_items[work_item_id]['rev'] = max(r['rev'] for r in history)

    async def get_work_item(self, work_item_id: int, fields: List[str]) -> Optional[Dict]:
        await asyncio.sleep(0)
        item = self.work_items.get(work_item_id)
        if item is None:
            return None
        return self._select(item, fields)

    async def get_work_items(self, work_item_ids: List[int], fields: List[str]) -> List[Dict]:
        await asyncio.sleep(0)
        return [self._select(self.work_items[i], fields) for i in work_item_ids if i in self.work_items]

    async def get_revisions(self, work_item_id: int) -> Optional[List[Dict]]:
        await asyncio.sleep(0)
        if work_item_id not in self.work_items and work_item_id not in self.revisions:
            return None
        return copy.deepcopy(self.revisions.get(work_item_id, []))

    async def query_by_wiql(self, query: str, project_id: str,
                            team_id: Optional[str] = None) -> List[Dict]:
        """Only understands the assignee of the fixed task query"""
        await asyncio.sleep(0)
        matches = []
        for item in self.work_items.values():
            assignee = (item['fields'].get(ASSIGNED_TO) or '').replace("'", "''")
            if f"[System.AssignedTo] = '{assignee}'" in query:
                matches.append({"id": item['id']})
        return matches

    async def update_work_item(self, operations: List[Dict[str, Any]],
                               work_item_id: int) -> Optional[Dict]:
        await asyncio.sleep(0)
        item = self.work_items.get(work_item_id)
        if item is None:
            return None

        self.patches.append({"id": work_item_id, "operations": copy.deepcopy(operations)})

        for operation in operations:
            field_name = operation['path'].split('/fields/', 1)[1]
            if field_name == HISTORY:
                continue
            item['fields'][field_name] = operation['value']

        item['rev'] += 1
        item['fields'][CHANGED_DATE] = datetime.now().isoformat()
        self.revisions.setdefault(work_item_id, []).append({
            "rev": item['rev'],
            "fields": copy.deepcopy(item['fields'])
        })
        return copy.deepcopy(item)

    @staticmethod
    def _select(item: Dict, fields: List[str]) -> Dict:
        return {
            "id": item['id'],
            "rev": item['rev'],
            "fields": {k: v for k, v in item['fields'].items() if k in fields}
        }


# Factory functions to get stub services
def get_stub_core_service():
    return StubCoreService()


def get_stub_work_item_tracking_service():
    return StubWorkItemTrackingService()
