"""
Unit tests for the work effort analyzer
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock

from tfs_bridge.models.task import TaskInfo, COMPLETED_WORK, CHANGED_DATE, REMAINING_WORK, HISTORY, TASK_FIELDS
from tfs_bridge.services.work_effort import (
    WorkEffortAnalyzer, work_per_days, revision_day, build_work_span_patch
)
from tfs_bridge.stub_services import StubWorkItemTrackingService
from tfs_bridge.utils.exceptions import (
    TaskNotFoundException, UpdateFailedException, ValidationException, SourceUnavailableException
)


def revision(rev, changed, completed):
    return {"rev": rev, "fields": {CHANGED_DATE: changed, COMPLETED_WORK: completed}}


def work_item(task_id, completed, remaining, **fields):
    return {
        "id": task_id,
        "rev": 1,
        "fields": {COMPLETED_WORK: completed, REMAINING_WORK: remaining, **fields},
    }


class TestWorkPerDays:
    """Tests for the revision history to daily delta computation."""

    def test_revisions_are_ordered_by_number(self):
        revisions = [
            revision(1, "2024-01-01T09:00:00", "2"),
            revision(3, "2024-01-02T09:00:00", "5"),
            revision(2, "2024-01-01T15:00:00", "3"),
        ]

        assert work_per_days(revisions) == {"2024-01-01": 3, "2024-01-02": 2}

    def test_deltas_add_up_to_last_completed_work(self):
        revisions = [
            revision(4, "2024-02-03T10:00:00", "7,5"),
            revision(1, "2024-02-01T10:00:00", None),
            revision(2, "2024-02-01T12:00:00", "1,5"),
            revision(3, "2024-02-02T10:00:00", 4),
            revision(5, "2024-02-05T10:00:00", 6),
        ]

        groups = work_per_days(revisions)

        assert sum(groups.values()) == pytest.approx(6)
        assert groups["2024-02-05"] == pytest.approx(-1.5)

    def test_unparseable_work_counts_as_zero(self):
        revisions = [
            revision(1, "2024-01-01T09:00:00", "3"),
            revision(2, "2024-01-02T09:00:00", "n/a"),
            revision(3, "2024-01-03T09:00:00", "4"),
        ]

        assert work_per_days(revisions) == {"2024-01-01": 3, "2024-01-02": -3, "2024-01-03": 4}

    def test_days_without_change_map_to_zero(self):
        revisions = [
            revision(1, "2024-01-01T09:00:00", "1"),
            revision(2, "2024-01-02T09:00:00", "1"),
        ]

        assert work_per_days(revisions) == {"2024-01-01": 1, "2024-01-02": 0}

    def test_equal_revision_numbers_keep_source_order(self):
        revisions = [
            revision(1, "2024-01-01T09:00:00", "2"),
            revision(1, "2024-01-02T09:00:00", "5"),
        ]

        assert work_per_days(revisions) == {"2024-01-01": 2, "2024-01-02": 3}

    def test_unreadable_date_uses_previous_day(self):
        revisions = [
            revision(1, "2024-01-01T09:00:00", "2"),
            revision(2, "garbage", "3"),
        ]

        assert work_per_days(revisions) == {"2024-01-01": 3}

    def test_unreadable_first_date_is_carried_forward(self):
        revisions = [
            revision(1, None, "2"),
            revision(2, "2024-01-04T09:00:00", "3"),
        ]

        assert work_per_days(revisions) == {"2024-01-04": 3}

    def test_no_revisions(self):
        assert work_per_days([]) == {}


class TestRevisionDay:
    """Tests for revision_day."""

    def test_naive_timestamp_is_local(self):
        assert revision_day("2024-05-06T23:59:59.123").isoformat() == "2024-05-06"

    def test_utc_timestamp_is_converted_to_local_day(self):
        moment = datetime(2024, 5, 6, 12, 0, tzinfo=timezone.utc)
        expected = moment.astimezone().date()

        assert revision_day("2024-05-06T12:00:00Z") == expected
        assert revision_day(moment) == expected

    def test_unreadable(self):
        assert revision_day("yesterday") is None
        assert revision_day(None) is None


class TestWorkSpanPatch:
    """Tests for build_work_span_patch."""

    def test_remaining_work_is_clamped(self):
        task = TaskInfo(id=42, completed_work=2, remaining_work=1)

        patch = build_work_span_patch(task, 1.5, "Alice")

        assert patch[0] == {"op": "replace", "path": f"/fields/{COMPLETED_WORK}", "value": 3.5}
        assert patch[1] == {"op": "replace", "path": f"/fields/{REMAINING_WORK}", "value": 0}
        assert patch[2]["op"] == "add"
        assert patch[2]["path"] == f"/fields/{HISTORY}"
        assert "Alice" in patch[2]["value"]

    def test_remaining_work_decreases(self):
        task = TaskInfo(id=42, completed_work=0, remaining_work=8)

        patch = build_work_span_patch(task, 2.25, "Bob")

        assert patch[1]["value"] == 5.75


class TestWorkEffortAnalyzer:
    """Tests for the analyzer against the stub tracking service."""

    @pytest.mark.asyncio
    async def test_get_task_info(self, tracking_service, collector):
        analyzer = WorkEffortAnalyzer(tracking_service, metrics=collector)

        task = await analyzer.get_task_info(102)

        assert task.title == "Tray icon states"
        assert task.activity == "Design"
        assert task.state == "To Do"
        assert task.estimated_work == 4.5
        assert task.completed_work == 0.0
        assert task.remaining_work == 4.5

    @pytest.mark.asyncio
    async def test_get_task_info_requests_fixed_fields(self, collector):
        source = AsyncMock()
        source.get_work_item.return_value = work_item(7, 1, 2)
        analyzer = WorkEffortAnalyzer(source, metrics=collector)

        await analyzer.get_task_info(7)

        source.get_work_item.assert_awaited_once_with(7, TASK_FIELDS)

    @pytest.mark.asyncio
    async def test_get_task_info_not_found(self, tracking_service, collector):
        analyzer = WorkEffortAnalyzer(tracking_service, metrics=collector)

        with pytest.raises(TaskNotFoundException):
            await analyzer.get_task_info(999)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("task_id", [0, -3, "12", None, True])
    async def test_task_id_must_be_positive_integer(self, tracking_service, collector, task_id):
        analyzer = WorkEffortAnalyzer(tracking_service, metrics=collector)

        with pytest.raises(ValidationException):
            await analyzer.get_task_info(task_id)

    @pytest.mark.asyncio
    async def test_get_work_per_days(self, tracking_service, collector):
        analyzer = WorkEffortAnalyzer(tracking_service, metrics=collector)

        groups = await analyzer.get_work_per_days(101)

        assert groups == {"2024-03-04": 1.5, "2024-03-05": 0.5}

    @pytest.mark.asyncio
    async def test_get_work_per_days_not_found(self, tracking_service, collector):
        analyzer = WorkEffortAnalyzer(tracking_service, metrics=collector)

        with pytest.raises(TaskNotFoundException):
            await analyzer.get_work_per_days(999)

    @pytest.mark.asyncio
    async def test_apply_work_span(self, collector):
        source = StubWorkItemTrackingService(work_items={42: work_item(42, 2, 1)}, revisions={})
        analyzer = WorkEffortAnalyzer(source, metrics=collector)

        task = await analyzer.apply_work_span(42, "1,5", "Alice")

        operations = source.patches[0]["operations"]
        assert operations[0]["value"] == 3.5
        assert operations[1]["value"] == 0
        assert "Alice" in operations[2]["value"]
        assert task.completed_work == 3.5
        assert task.remaining_work == 0

    @pytest.mark.asyncio
    async def test_apply_work_span_returns_patched_item(self, collector):
        source = AsyncMock()
        source.get_work_item.return_value = work_item(5, "1", "4")
        source.update_work_item.return_value = work_item(5, 9, 9)
        analyzer = WorkEffortAnalyzer(source, metrics=collector)

        task = await analyzer.apply_work_span(5, 2, "Bob")

        # Built from the patch response, not re-fetched
        assert task.completed_work == 9
        source.get_work_item.assert_awaited_once()
        patch, task_id = source.update_work_item.await_args.args
        assert task_id == 5
        assert [op["value"] for op in patch[:2]] == [3, 2]

    @pytest.mark.asyncio
    async def test_apply_work_span_update_failed(self, collector):
        source = AsyncMock()
        source.get_work_item.return_value = work_item(5, 1, 4)
        source.update_work_item.return_value = None
        analyzer = WorkEffortAnalyzer(source, metrics=collector)

        with pytest.raises(UpdateFailedException):
            await analyzer.apply_work_span(5, 1, "Bob")

        assert collector.counters["work_item_update_failures"] == 1

    @pytest.mark.asyncio
    async def test_logged_work_shows_up_in_history(self, tracking_service, collector):
        analyzer = WorkEffortAnalyzer(tracking_service, metrics=collector)

        await analyzer.apply_work_span(101, 3, "Alice Novak")
        groups = await analyzer.get_work_per_days(101)

        assert sum(groups.values()) == 5

    @pytest.mark.asyncio
    async def test_source_failure_propagates(self, collector):
        source = AsyncMock()
        source.get_revisions.side_effect = SourceUnavailableException("WorkItemTracking", "down", 503)
        analyzer = WorkEffortAnalyzer(source, metrics=collector)

        with pytest.raises(SourceUnavailableException):
            await analyzer.get_work_per_days(1)


class TestListMyTasks:
    """Tests for list_my_tasks."""

    @pytest.mark.asyncio
    async def test_lists_tasks_of_user(self, tracking_service, collector):
        analyzer = WorkEffortAnalyzer(tracking_service, metrics=collector)

        tasks = await analyzer.list_my_tasks("proj-001", "Alice Novak")

        assert [t.id for t in tasks] == [101, 102]
        assert tasks[1].estimated_work == 4.5

    @pytest.mark.asyncio
    async def test_query_names_user_and_project_context(self, collector):
        source = AsyncMock()
        source.query_by_wiql.return_value = [{"id": 3}, {"id": 1}]
        source.get_work_items.return_value = [work_item(3, 1, 1), work_item(1, 2, 2)]
        analyzer = WorkEffortAnalyzer(source, metrics=collector)

        tasks = await analyzer.list_my_tasks("proj-9", "Dan O'Brien", team_id="team-1")

        query, project_id, team_id = source.query_by_wiql.await_args.args
        assert "[System.AssignedTo] = 'Dan O''Brien'" in query
        assert "@currentIteration" in query
        assert (project_id, team_id) == ("proj-9", "team-1")
        source.get_work_items.assert_awaited_once_with([3, 1], TASK_FIELDS)
        assert [t.id for t in tasks] == [3, 1]

    @pytest.mark.asyncio
    async def test_no_matches(self, collector):
        source = AsyncMock()
        source.query_by_wiql.return_value = []
        analyzer = WorkEffortAnalyzer(source, metrics=collector)

        assert await analyzer.list_my_tasks("proj-9", "Nobody") == []
        source.get_work_items.assert_not_awaited()
