"""Work item data models"""
from dataclasses import dataclass
from typing import Optional, Dict, Any

from ..utils.numbers import parse_float

# Field reference names
WORK_ITEM_TYPE = "System.WorkItemType"
TITLE = "System.Title"
ASSIGNED_TO = "System.AssignedTo"
STATE = "System.State"
TAGS = "System.Tags"
HISTORY = "System.History"
CHANGED_DATE = "System.ChangedDate"
ITERATION_PATH = "System.IterationPath"
ESTIMATED_WORK = "Microsoft.VSTS.Scheduling.EstimatedWork"
COMPLETED_WORK = "Microsoft.VSTS.Scheduling.CompletedWork"
REMAINING_WORK = "Microsoft.VSTS.Scheduling.RemainingWork"
ACTIVITY = "Microsoft.VSTS.Common.Activity"

# Fields requested whenever a task view is built
TASK_FIELDS = [
    WORK_ITEM_TYPE, TITLE, ASSIGNED_TO, STATE, TAGS,
    ESTIMATED_WORK, COMPLETED_WORK, REMAINING_WORK, ACTIVITY
]


@dataclass
class TaskInfo:
    """Task view derived from a work item field bag"""
    id: int
    title: Optional[str] = None
    activity: Optional[str] = None
    state: Optional[str] = None
    tags: Optional[str] = None
    estimated_work: float = 0.0
    completed_work: float = 0.0
    remaining_work: float = 0.0

    @classmethod
    def from_work_item(cls, work_item: Dict[str, Any]) -> 'TaskInfo':
        """Build a task view from a work item with an id and a fields bag"""
        fields = work_item.get('fields') or {}
        return cls(
            id=work_item['id'],
            title=fields.get(TITLE),
            activity=fields.get(ACTIVITY),
            state=fields.get(STATE),
            tags=fields.get(TAGS),
            estimated_work=parse_float(fields.get(ESTIMATED_WORK)),
            completed_work=parse_float(fields.get(COMPLETED_WORK)),
            remaining_work=parse_float(fields.get(REMAINING_WORK))
        )

    def to_dict(self):
        """Convert to dictionary representation"""
        return {
            'id': self.id,
            'title': self.title,
            'activity': self.activity,
            'state': self.state,
            'tags': self.tags,
            'estimated_work': self.estimated_work,
            'completed_work': self.completed_work,
            'remaining_work': self.remaining_work
        }
