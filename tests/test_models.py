"""
Tests for status and queue item models.
"""

import pytest

REF_URL = "https://jenkins.example.com/queue/item/42/"


class TestBuildTriggerStatus:
    """Tests for BuildTriggerStatus dataclass."""

    def test_queued_status(self):
        """Test QUEUED status creation."""
        from digger.models.status import BuildTriggerStatus, TriggerState
        from digger.services.jenkins.schemas import QueueReference

        status = BuildTriggerStatus.queued(QueueReference(REF_URL))

        assert status.state is TriggerState.QUEUED
        assert status.queue_reference.url == REF_URL
        assert status.build_number is None
        assert not status.state.is_terminal

    def test_started_status(self):
        """Test STARTED status carries the build number."""
        from digger.models.status import BuildTriggerStatus, TriggerState
        from digger.services.jenkins.schemas import QueueReference

        status = BuildTriggerStatus.started(QueueReference(REF_URL), 17)

        assert status.state is TriggerState.STARTED
        assert status.build_number == 17
        assert status.is_started

    def test_started_without_number_rejected(self):
        """Test that STARTED requires a build number."""
        from digger.models.status import BuildTriggerStatus, TriggerState
        from digger.services.jenkins.schemas import QueueReference

        with pytest.raises(ValueError):
            BuildTriggerStatus(TriggerState.STARTED, QueueReference(REF_URL))

    @pytest.mark.parametrize("state_name", ["QUEUED", "CANCELLED_IN_QUEUE", "STUCK_IN_QUEUE", "TIMED_OUT"])
    def test_number_only_for_started(self, state_name):
        """Test that non-STARTED states cannot carry a build number."""
        from digger.models.status import BuildTriggerStatus, TriggerState
        from digger.services.jenkins.schemas import QueueReference

        with pytest.raises(ValueError):
            BuildTriggerStatus(TriggerState[state_name], QueueReference(REF_URL), 3)

    def test_status_is_immutable(self):
        """Test that a status cannot be changed after creation."""
        from dataclasses import FrozenInstanceError
        from digger.models.status import BuildTriggerStatus, TriggerState
        from digger.services.jenkins.schemas import QueueReference

        status = BuildTriggerStatus(TriggerState.TIMED_OUT, QueueReference(REF_URL))

        with pytest.raises(FrozenInstanceError):
            status.build_number = 5

    def test_terminal_states(self):
        """Test that every state but QUEUED is terminal."""
        from digger.models.status import TriggerState

        terminal = {s for s in TriggerState if s.is_terminal}

        assert terminal == {
            TriggerState.STARTED,
            TriggerState.CANCELLED_IN_QUEUE,
            TriggerState.STUCK_IN_QUEUE,
            TriggerState.TIMED_OUT,
        }


class TestQueueReference:
    """Tests for QueueReference."""

    def test_queue_id_parsed(self):
        """Test parsing the id from a queue item URL."""
        from digger.services.jenkins.schemas import QueueReference

        assert QueueReference(REF_URL).queue_id == 42
        assert QueueReference("https://jenkins.example.com/queue/item/7").queue_id == 7

    def test_queue_id_missing(self):
        """Test URLs without an item id."""
        from digger.services.jenkins.schemas import QueueReference

        assert QueueReference("https://jenkins.example.com/queue/").queue_id is None

    def test_api_url(self):
        """Test the JSON API URL of a queue item."""
        from digger.services.jenkins.schemas import QueueReference

        assert QueueReference(REF_URL).api_url == "https://jenkins.example.com/queue/item/42/api/json"


class TestQueueItem:
    """Tests for queue item classification."""

    def test_pending(self):
        """Test a waiting item."""
        from digger.services.jenkins.schemas import QueueItem, QueueItemState

        item = QueueItem.from_json({"blocked": False, "buildable": True, "why": "Waiting for executor"})

        assert item.state is QueueItemState.PENDING
        assert item.build_number is None
        assert item.why == "Waiting for executor"

    def test_started(self):
        """Test an item with an assigned executable."""
        from digger.services.jenkins.schemas import QueueItem, QueueItemState

        item = QueueItem.from_json({
            "executable": {"number": 31, "url": "https://jenkins.example.com/job/app/31/"},
        })

        assert item.state is QueueItemState.STARTED
        assert item.build_number == 31
        assert item.build_url.endswith("/31/")

    def test_null_executable_is_pending(self):
        """Test that a null executable means not started."""
        from digger.services.jenkins.schemas import QueueItem, QueueItemState

        assert QueueItem.from_json({"executable": None}).state is QueueItemState.PENDING

    def test_cancelled(self):
        """Test a cancelled item."""
        from digger.services.jenkins.schemas import QueueItem, QueueItemState

        assert QueueItem.from_json({"cancelled": True}).state is QueueItemState.CANCELLED

    def test_stuck(self):
        """Test a stuck item."""
        from digger.services.jenkins.schemas import QueueItem, QueueItemState

        assert QueueItem.from_json({"stuck": True}).state is QueueItemState.STUCK

    def test_cancelled_takes_priority(self):
        """Test that cancellation wins over executable and stuck."""
        from digger.services.jenkins.schemas import QueueItem, QueueItemState

        item = QueueItem.from_json({"cancelled": True, "stuck": True, "executable": {"number": 1}})

        assert item.state is QueueItemState.CANCELLED
        assert item.build_number is None

    def test_started_takes_priority_over_stuck(self):
        """Test that an assigned executable wins over a stale stuck flag."""
        from digger.services.jenkins.schemas import QueueItem, QueueItemState

        item = QueueItem.from_json({"stuck": True, "executable": {"number": 2}})

        assert item.state is QueueItemState.STARTED


class TestBuildInfo:
    """Tests for BuildInfo parsing."""

    def test_from_json(self):
        """Test parsing a build payload with artifacts."""
        from digger.services.jenkins.schemas import BuildInfo

        build = BuildInfo.from_json({
            "number": 9,
            "url": "https://jenkins.example.com/job/app/9/",
            "building": False,
            "result": "SUCCESS",
            "duration": 1200,
            "timestamp": 1700000000000,
            "queueId": 42,
            "artifacts": [{"fileName": "app.apk", "relativePath": "out/app.apk"}],
        })

        assert build.number == 9
        assert build.result == "SUCCESS"
        assert build.display_name == "#9"
        assert build.queue_id == 42
        assert build.artifacts[0].relative_path == "out/app.apk"
