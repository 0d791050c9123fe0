"""Routes desktop client requests to the directory and work effort services"""
import logging
from typing import Any, Dict, Optional, Union

from ..models.events import BridgeRequest, BridgeResponse, MessageType, ResponseStatus
from ..utils.exceptions import TfsBridgeException, ValidationException
from ..utils.metrics import MetricsCollector, metrics as default_metrics
from .directory import DirectoryAggregator
from .work_effort import WorkEffortAnalyzer

logger = logging.getLogger(__name__)


class RequestDispatcher:
    """Answers each request with a response envelope.

    Failures come back as an envelope with status ``error`` and a message,
    never as an empty payload. Unexpected exceptions are logged with their
    traceback and reported the same way.
    """

    def __init__(self, directory: DirectoryAggregator, analyzer: WorkEffortAnalyzer,
                 metrics: Optional[MetricsCollector] = None):
        self.directory = directory
        self.analyzer = analyzer
        self.metrics = metrics or default_metrics

        self._handlers = {
            MessageType.LOAD_DIRECTORY: self._load_directory,
            MessageType.PROJECTS: self._projects,
            MessageType.TEAM_MEMBERS: self._team_members,
            MessageType.TASK_INFO: self._task_info,
            MessageType.WORK_PER_DAYS: self._work_per_days,
            MessageType.APPLY_WORK_SPAN: self._apply_work_span,
            MessageType.LIST_MY_TASKS: self._list_my_tasks,
        }

    async def handle(self, request: Union[BridgeRequest, Dict[str, Any]]) -> BridgeResponse:
        if isinstance(request, dict):
            try:
                request = BridgeRequest.from_dict(request)
            except (KeyError, ValueError) as e:
                logger.warning(f"Rejected malformed request {request!r}: {e}")
                return BridgeResponse(
                    type=MessageType(request.get('type')) if _known_type(request) else None,
                    status=ResponseStatus.FAILED,
                    error=f"Malformed request: {e}"
                )

        operation = request.type.value
        self.metrics.increment(f"{operation}_calls")
        logger.debug(f"Handling {operation} with {request.payload}")

        try:
            payload = await self._handlers[request.type](request.payload)
        except TfsBridgeException as e:
            self.metrics.increment(f"{operation}_failures")
            logger.warning(f"{operation} failed: {e}")
            return BridgeResponse(type=request.type, status=ResponseStatus.FAILED, error=str(e))
        except Exception as e:
            self.metrics.increment(f"{operation}_failures")
            logger.error(f"{operation} error: {str(e)}", exc_info=True)
            return BridgeResponse(type=request.type, status=ResponseStatus.FAILED, error=str(e))

        return BridgeResponse(type=request.type, payload=payload)

    async def _load_directory(self, payload: Dict) -> Dict:
        snapshot = await self.directory.load()
        return {'projects': len(snapshot.projects), 'team_members': len(snapshot.members)}

    async def _projects(self, payload: Dict) -> list:
        return [p.to_dict() for p in self.directory.projects()]

    async def _team_members(self, payload: Dict) -> list:
        return [m.to_dict() for m in self.directory.team_members()]

    async def _task_info(self, payload: Dict) -> Dict:
        task = await self.analyzer.get_task_info(_require(payload, 'task_id'))
        return task.to_dict()

    async def _work_per_days(self, payload: Dict) -> Dict[str, float]:
        return await self.analyzer.get_work_per_days(_require(payload, 'task_id'))

    async def _apply_work_span(self, payload: Dict) -> Dict:
        task = await self.analyzer.apply_work_span(
            _require(payload, 'task_id'),
            _require(payload, 'work_span'),
            _require(payload, 'user_display_name')
        )
        return task.to_dict()

    async def _list_my_tasks(self, payload: Dict) -> list:
        tasks = await self.analyzer.list_my_tasks(
            _require(payload, 'project_id'),
            _require(payload, 'user_display_name'),
            payload.get('team_id')
        )
        return [t.to_dict() for t in tasks]


def _require(payload: Dict, key: str) -> Any:
    value = payload.get(key)
    if value is None or value == '':
        raise ValidationException(f"{key} required")
    return value


def _known_type(request: Dict) -> bool:
    kind = request.get('type')
    return isinstance(kind, str) and kind in {t.value for t in MessageType}
