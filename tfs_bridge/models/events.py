"""Request and response envelope models"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any
from enum import Enum


class MessageType(str, Enum):
    """Request types understood by the dispatcher"""
    LOAD_DIRECTORY = "load_directory"
    PROJECTS = "projects"
    TEAM_MEMBERS = "team_members"
    TASK_INFO = "task_info"
    WORK_PER_DAYS = "work_per_days"
    APPLY_WORK_SPAN = "apply_work_span"
    LIST_MY_TASKS = "list_my_tasks"


class ResponseStatus(str, Enum):
    """Response status enum"""
    SUCCESS = "success"
    FAILED = "error"


@dataclass
class BridgeRequest:
    """A request coming from the desktop client"""
    type: MessageType
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BridgeRequest':
        return cls(
            type=MessageType(data['type']),
            payload={k: v for k, v in data.items() if k != 'type'}
        )


@dataclass
class BridgeResponse:
    """Result of handling one request; error is set instead of payload on failure"""
    type: Optional[MessageType]
    status: ResponseStatus = ResponseStatus.SUCCESS
    payload: Optional[Any] = None
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_successful(self) -> bool:
        return self.status == ResponseStatus.SUCCESS

    def to_dict(self):
        """Convert to dictionary representation"""
        return {
            'type': self.type.value if self.type else None,
            'status': self.status.value,
            'payload': self.payload,
            'error': self.error,
            'timestamp': self.timestamp.isoformat()
        }
