"""
Health state recorded by the Elasticsearch health checker.

CheckState is the caller-owned sink a checker writes into. It keeps the time
of the latest success and failure across updates.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from esclient.errors.exceptions import invalid_health_state


class HealthStatus(str, Enum):
    """Severity levels a check can report."""
    OK = "OK"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


@dataclass
class CheckState:
    """
    Latest outcome of a named health check.

    Attributes:
        name: Name of the checked dependency
        status: Severity of the latest check, None until the first update
        message: Human readable description of the latest check
        status_code: Status code returned by the dependency
        last_checked: When the latest check completed
        last_success: When the latest OK check completed
        last_failure: When the latest WARNING or CRITICAL check completed
    """
    name: str = "elasticsearch"
    status: Optional[HealthStatus] = None
    message: str = ""
    status_code: int = 0
    last_checked: Optional[datetime] = None
    last_success: Optional[datetime] = None
    last_failure: Optional[datetime] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def update(self, status: Any, message: str, status_code: int) -> None:
        """
        Record the outcome of a check.

        Raises:
            ClientError: INVALID_HEALTH_STATE for an unknown status
        """
        try:
            status = HealthStatus(status)
        except ValueError:
            raise invalid_health_state(
                f"invalid status provided: {status!r}",
                details={"name": self.name},
            ) from None

        now = datetime.now(timezone.utc)
        with self._lock:
            self.status = status
            self.message = message
            self.status_code = status_code
            self.last_checked = now
            if status is HealthStatus.OK:
                self.last_success = now
            else:
                self.last_failure = now

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        with self._lock:
            return {
                "name": self.name,
                "status": self.status.value if self.status is not None else None,
                "status_code": self.status_code,
                "message": self.message,
                "last_checked": _isoformat(self.last_checked),
                "last_success": _isoformat(self.last_success),
                "last_failure": _isoformat(self.last_failure),
            }
