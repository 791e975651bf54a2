"""
Unit tests for CheckState.
"""

from datetime import datetime

import pytest

from esclient.errors.codes import ErrorCode
from esclient.errors.exceptions import ClientError
from esclient.health.state import CheckState, HealthStatus


class TestCheckStateUpdate:
    """Tests for CheckState.update."""

    def test_initial_state(self):
        state = CheckState()

        assert state.name == "elasticsearch"
        assert state.status is None
        assert state.status_code == 0
        assert state.last_checked is None

    def test_ok_sets_last_success(self):
        state = CheckState()

        state.update(HealthStatus.OK, "healthy", 200)

        assert state.status == HealthStatus.OK
        assert state.message == "healthy"
        assert state.status_code == 200
        assert state.last_checked == state.last_success
        assert state.last_failure is None

    @pytest.mark.parametrize("status", [HealthStatus.WARNING, HealthStatus.CRITICAL])
    def test_non_ok_sets_last_failure(self, status):
        state = CheckState()

        state.update(status, "degraded", 500)

        assert state.last_checked == state.last_failure
        assert state.last_success is None

    def test_status_accepted_as_string(self):
        state = CheckState()

        state.update("WARNING", "at risk", 200)

        assert state.status is HealthStatus.WARNING

    def test_invalid_status_raises_and_keeps_state(self):
        state = CheckState()
        state.update(HealthStatus.OK, "healthy", 200)

        with pytest.raises(ClientError) as exc_info:
            state.update("UNKNOWN", "whatever", 500)

        assert exc_info.value.error_code == ErrorCode.INVALID_HEALTH_STATE
        assert state.status == HealthStatus.OK
        assert state.message == "healthy"

    def test_timestamps_are_timezone_aware(self):
        state = CheckState()

        state.update(HealthStatus.OK, "healthy", 200)

        assert isinstance(state.last_checked, datetime)
        assert state.last_checked.tzinfo is not None


class TestCheckStateSerialization:
    """Tests for CheckState.to_dict."""

    def test_to_dict_before_any_check(self):
        assert CheckState(name="search").to_dict() == {
            "name": "search",
            "status": None,
            "status_code": 0,
            "message": "",
            "last_checked": None,
            "last_success": None,
            "last_failure": None,
        }

    def test_to_dict_after_check(self):
        state = CheckState()
        state.update(HealthStatus.CRITICAL, "cluster health red. Cluster is unhealthy", 200)

        data = state.to_dict()

        assert data["status"] == "CRITICAL"
        assert data["status_code"] == 200
        assert data["last_checked"].endswith("Z")
        assert data["last_failure"] == data["last_checked"]
        assert data["last_success"] is None

    def test_lock_is_not_compared(self):
        assert CheckState() == CheckState()
