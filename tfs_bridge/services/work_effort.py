"""Task reads, work logging and completed work history"""
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Protocol

from ..models.task import (
    TaskInfo, TASK_FIELDS, CHANGED_DATE, COMPLETED_WORK, REMAINING_WORK, HISTORY
)
from ..utils.exceptions import TaskNotFoundException, UpdateFailedException, ValidationException
from ..utils.metrics import MetricsCollector, metrics as default_metrics
from ..utils.numbers import parse_float

logger = logging.getLogger(__name__)

# Tasks assigned to a user that are either finished in the last two days or
# planned for the current iteration
MY_TASKS_QUERY = """
SELECT [System.Id], [System.WorkItemType], [System.Title], [System.AssignedTo], [System.State], [System.Tags], [Microsoft.VSTS.Scheduling.EstimatedWork], [Microsoft.VSTS.Scheduling.CompletedWork], [System.IterationPath]
    FROM WorkItems
    WHERE
        [System.TeamProject] = @project and [System.WorkItemType] = 'Task' and [System.AssignedTo] = '{assigned_to}'
        and (
            (
                ([System.ChangedDate] >= @today - 2 and [System.ChangedDate] <= @today)
                and [System.State] = 'Done'
            )
            or ([System.State] = 'In Progress' and [System.IterationPath] = @currentIteration)
            or ([System.State] = 'To Do' and [System.IterationPath] = @currentIteration)
        )
    ORDER BY [State], [Changed Date], [Completed Work] DESC
"""


class TrackingSource(Protocol):
    """Anything that can read, query and patch work items"""

    async def get_work_item(self, work_item_id: int, fields: List[str]) -> Optional[Dict]: ...

    async def get_work_items(self, work_item_ids: List[int], fields: List[str]) -> List[Dict]: ...

    async def get_revisions(self, work_item_id: int) -> Optional[List[Dict]]: ...

    async def query_by_wiql(self, query: str, project_id: str,
                            team_id: Optional[str] = None) -> List[Dict]: ...

    async def update_work_item(self, operations: List[Dict[str, Any]],
                               work_item_id: int) -> Optional[Dict]: ...


def revision_day(changed_date: Any) -> Optional[date]:
    """Local calendar day of a revision's changed date, None if it cannot be read"""
    if isinstance(changed_date, datetime):
        moment = changed_date
    else:
        try:
            moment = datetime.fromisoformat(str(changed_date))
        except ValueError:
            return None

    # Naive timestamps are taken as local time already
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.date()


def work_per_days(revisions: List[Dict]) -> Dict[str, float]:
    """Completed work added per calendar day, from a work item's revisions.

    Revisions are ordered by revision number first (sorted() is stable, so equal
    numbers keep the source order). Each revision contributes the difference
    between its completed work and the previous revision's, so the values add
    up to the completed work of the last revision. A revision whose date cannot
    be read is counted on the previous revision's day, or on the next readable
    day when no earlier day is known.
    """
    groups: Dict[str, float] = {}
    previous_completed = 0.0
    last_day: Optional[str] = None
    carried = 0.0

    for revision in sorted(revisions, key=lambda r: r.get('rev', 0)):
        fields = revision.get('fields') or {}
        completed = parse_float(fields.get(COMPLETED_WORK))
        added = completed - previous_completed
        previous_completed = completed

        day = revision_day(fields.get(CHANGED_DATE))
        if day is None:
            logger.debug(f"Revision {revision.get('rev')} has no readable changed date")
            if last_day is None:
                carried += added
            else:
                groups[last_day] += added
            continue

        last_day = day.isoformat()
        groups[last_day] = groups.get(last_day, 0.0) + added + carried
        carried = 0.0

    return groups


def build_work_span_patch(task: TaskInfo, work_span: float, user_display_name: str) -> List[Dict[str, Any]]:
    """Patch operations recording a work span on a task"""
    remaining = max(0.0, task.remaining_work - work_span)

    return [
        {
            'op': 'replace',
            'path': f"/fields/{COMPLETED_WORK}",
            'value': task.completed_work + work_span
        },
        {
            'op': 'replace',
            'path': f"/fields/{REMAINING_WORK}",
            'value': remaining
        },
        {
            'op': 'add',
            'path': f"/fields/{HISTORY}",
            'value': f"Work progress by: {user_display_name}"
        }
    ]


class WorkEffortAnalyzer:
    """Per task operations against the work item tracking source"""

    def __init__(self, source: TrackingSource, metrics: Optional[MetricsCollector] = None):
        self.source = source
        self.metrics = metrics or default_metrics

    async def get_task_info(self, task_id: int) -> TaskInfo:
        """Current view of a task"""
        _check_task_id(task_id)
        self.metrics.increment('work_item_reads')

        work_item = await self.source.get_work_item(task_id, TASK_FIELDS)
        if not work_item:
            raise TaskNotFoundException(task_id)

        return TaskInfo.from_work_item(work_item)

    async def get_work_per_days(self, task_id: int) -> Dict[str, float]:
        """Completed work added on each day, keyed by ISO date"""
        _check_task_id(task_id)
        self.metrics.increment('revision_reads')

        revisions = await self.source.get_revisions(task_id)
        if revisions is None:
            raise TaskNotFoundException(task_id)

        groups = work_per_days(revisions)
        logger.debug(f"Task {task_id}: {len(revisions)} revisions over {len(groups)} days")
        return groups

    async def apply_work_span(self, task_id: int, work_span: Any, user_display_name: str) -> TaskInfo:
        """Add a work span to completed work, take it off remaining work and note who did it"""
        span = parse_float(work_span)
        task = await self.get_task_info(task_id)

        patch = build_work_span_patch(task, span, user_display_name)

        self.metrics.increment('work_item_updates')
        updated = await self.source.update_work_item(patch, task_id)
        if not updated:
            self.metrics.increment('work_item_update_failures')
            raise UpdateFailedException(task_id)

        logger.info(f"Logged {span} on task {task_id} for {user_display_name}")
        return TaskInfo.from_work_item(updated)

    async def list_my_tasks(self, project_id: str, current_user_display_name: str,
                            team_id: Optional[str] = None) -> List[TaskInfo]:
        """Open tasks of the current iteration and recently finished tasks assigned to a user"""
        # WIQL string literals escape a quote by doubling it
        query = MY_TASKS_QUERY.format(assigned_to=current_user_display_name.replace("'", "''"))

        matches = await self.source.query_by_wiql(query, project_id, team_id)
        task_ids = [item['id'] for item in matches]
        if not task_ids:
            return []

        work_items = await self.source.get_work_items(task_ids, TASK_FIELDS)
        return [TaskInfo.from_work_item(item) for item in work_items]


def _check_task_id(task_id: int):
    if isinstance(task_id, bool) or not isinstance(task_id, int) or task_id <= 0:
        raise ValidationException(f"Task id must be a positive integer, got {task_id!r}")
