"""Main entry point for the TFS bridge"""
import argparse
import asyncio
import json
import sys
from typing import List, Optional, Tuple

from .config.settings import settings
from .models.events import BridgeResponse, MessageType
from .services.directory import DirectoryAggregator
from .services.dispatcher import RequestDispatcher
from .services.work_effort import WorkEffortAnalyzer
from .stub_services import get_stub_core_service, get_stub_work_item_tracking_service
from .tools.api_clients.core_service import CoreServiceClient
from .tools.api_clients.work_item_tracking import WorkItemTrackingClient
from .utils.logging import setup_logging
from .utils.metrics import metrics


def build_sources() -> Tuple[object, object, list]:
    """Directory and tracking sources for the configured run mode, plus what to close"""
    if settings.is_local_mode():
        return get_stub_core_service(), get_stub_work_item_tracking_service(), []

    client_args = dict(
        base_url=settings.TFS_API_URL,
        api_key=settings.TFS_TOKEN,
        credentials=settings.credentials(),
        api_version=settings.TFS_API_VERSION,
        timeout=settings.REQUEST_TIMEOUT
    )
    core = CoreServiceClient(**client_args)
    tracking = WorkItemTrackingClient(**client_args)
    return core, tracking, [core, tracking]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tfs-bridge", description="Query and update TFS work items")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("directory", help="Load projects and team members")

    task = sub.add_parser("task", help="Show a task")
    task.add_argument("task_id", type=int)

    per_day = sub.add_parser("work-per-day", help="Completed work added per day")
    per_day.add_argument("task_id", type=int)

    log_work = sub.add_parser("log-work", help="Record a work span on a task")
    log_work.add_argument("task_id", type=int)
    log_work.add_argument("work_span", help="Hours, '.' or ',' as decimal separator")
    log_work.add_argument("user", help="Display name of the user logging the work")

    my_tasks = sub.add_parser("my-tasks", help="Current tasks of a user in a project")
    my_tasks.add_argument("project_id")
    my_tasks.add_argument("user", help="Display name of the assignee")
    my_tasks.add_argument("--team", dest="team_id")

    return parser


def to_requests(args: argparse.Namespace) -> List[dict]:
    """Requests to send for a parsed command line"""
    if args.command == "directory":
        return [
            {"type": MessageType.LOAD_DIRECTORY.value},
            {"type": MessageType.PROJECTS.value},
            {"type": MessageType.TEAM_MEMBERS.value}
        ]
    if args.command == "task":
        return [{"type": MessageType.TASK_INFO.value, "task_id": args.task_id}]
    if args.command == "work-per-day":
        return [{"type": MessageType.WORK_PER_DAYS.value, "task_id": args.task_id}]
    if args.command == "log-work":
        return [{
            "type": MessageType.APPLY_WORK_SPAN.value,
            "task_id": args.task_id,
            "work_span": args.work_span,
            "user_display_name": args.user
        }]
    return [{
        "type": MessageType.LIST_MY_TASKS.value,
        "project_id": args.project_id,
        "user_display_name": args.user,
        "team_id": args.team_id
    }]


async def main(argv: Optional[List[str]] = None) -> List[BridgeResponse]:
    """Run one command and print its responses as JSON"""
    args = build_parser().parse_args(argv)

    logger = setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    logger.debug(f"Running in {settings.RUN_MODE} mode")
    settings.validate()

    core, tracking, closeables = build_sources()
    directory = DirectoryAggregator(core, concurrency=settings.DIRECTORY_CONCURRENCY)
    dispatcher = RequestDispatcher(directory, WorkEffortAnalyzer(tracking))

    responses = []
    try:
        for request in to_requests(args):
            response = await dispatcher.handle(request)
            responses.append(response)
            print(json.dumps(response.to_dict(), indent=2, default=str))
            if not response.is_successful:
                break
    finally:
        for client in closeables:
            await client.close()

    logger.debug(f"Metrics: {json.dumps(metrics.get_summary(), indent=2)}")
    return responses


def run():
    """Console script entry point"""
    try:
        responses = asyncio.run(main())
    except ValueError as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        sys.exit(2)

    if not all(r.is_successful for r in responses):
        sys.exit(1)


if __name__ == "__main__":
    run()
