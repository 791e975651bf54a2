"""
Elasticsearch health checker.

HealthChecker answers "is this Elasticsearch backend usable right now?". It
requests the cluster health, optionally confirms that a fixed set of indexes
exists, and classifies the outcome as OK, WARNING or CRITICAL together with a
message and the status code returned by the cluster.

Every failure is converted into the recorded state; a check never raises.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, field_validator

from esclient.errors.codes import ErrorCode
from esclient.errors.exceptions import ClientError
from esclient.health.probes import PATH_HEALTH, HealthProbe
from esclient.health.state import CheckState, HealthStatus

logger = logging.getLogger(__name__)

SERVICE_NAME = "elasticsearch"

MSG_HEALTHY = "elasticsearch is healthy and the required indexes exist"
MSG_UNEXPECTED_STATUS_CODE = "unexpected status code from api"
MSG_PARSING_BODY = "error parsing cluster health response body"
MSG_CLUSTER_AT_RISK = (
    "elasticsearch cluster state yellow but functional. "
    "Data might be at risk, check your replica shards"
)
MSG_CLUSTER_UNHEALTHY = "cluster health red. Cluster is unhealthy"
MSG_INVALID_HEALTH_STATUS = "invalid health status returned"
MSG_INDEX_DOES_NOT_EXIST = "index does not exist in cluster"

# Status code reported when the cluster could not be reached
TRANSPORT_FAILURE_STATUS_CODE = 500


class ClusterHealthStatus(str, Enum):
    """Health values returned by the cluster health API."""
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class ClusterHealth(BaseModel):
    """Cluster health response body; fields other than status are ignored."""
    model_config = ConfigDict(extra="ignore")

    status: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def null_status_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v


# A body of null decodes to an empty ClusterHealth
_cluster_health_adapter = TypeAdapter(Optional[ClusterHealth])


@dataclass(frozen=True)
class CheckResult:
    """Classification of a single health check."""
    status: HealthStatus
    message: str
    status_code: int
    error_code: Optional[ErrorCode] = None


def _critical(error_code: ErrorCode, message: str, status_code: int) -> CheckResult:
    return CheckResult(HealthStatus.CRITICAL, message, status_code, error_code)


def _decode_cluster_health(body: Any) -> ClusterHealth:
    if isinstance(body, (bytes, str)):
        decoded = _cluster_health_adapter.validate_json(body)
    else:
        decoded = _cluster_health_adapter.validate_python(body)
    return decoded if decoded is not None else ClusterHealth()


class HealthChecker:
    """
    Health checker for one Elasticsearch backend and a fixed set of indexes.

    Attributes:
        probe: Issues the cluster health and index existence calls
        indexes: Index names that must exist, probed in order
        treat_yellow_as_warning: Report a yellow cluster as WARNING. When
            False (default), yellow is reported as OK with the at-risk message.
        fail_fast: Stop probing indexes at the first failure. When False,
            every index is probed and the first failure is reported.
        name: Name recorded in new CheckState objects
        url: Base URL of the cluster, used in log records
    """

    def __init__(
        self,
        probe: HealthProbe,
        indexes: Iterable[str] = (),
        treat_yellow_as_warning: bool = False,
        fail_fast: bool = True,
        name: str = SERVICE_NAME,
        url: str = "",
    ):
        self.probe = probe
        self.indexes = tuple(indexes)
        self.treat_yellow_as_warning = treat_yellow_as_warning
        self.fail_fast = fail_fast
        self.name = name
        self.url = url.rstrip("/")

    async def __call__(self, state: Optional[CheckState] = None) -> CheckState:
        return await self.check(state)

    async def check(self, state: Optional[CheckState] = None) -> CheckState:
        """
        Run the health check and record its outcome.

        Args:
            state: Caller-owned state to update. A new one is created if None.

        Returns:
            The updated CheckState
        """
        if state is None:
            state = CheckState(name=self.name)

        try:
            result = await self.evaluate()
        except Exception as e:
            logger.exception("unexpected error during elasticsearch health check")
            result = _critical(ErrorCode.TRANSPORT_ERROR, str(e), TRANSPORT_FAILURE_STATUS_CODE)

        try:
            state.update(result.status, result.message, result.status_code)
        except ClientError as e:
            logger.warning("unable to update health state", extra={
                "extra_data": {"error": e.message}
            })

        return state

    async def evaluate(self) -> CheckResult:
        """Classify the backend without recording the outcome anywhere."""
        cluster_result = await self._check_cluster()
        if cluster_result.status is HealthStatus.CRITICAL:
            return cluster_result

        if self.indexes:
            index_failure = await self._check_indexes()
            if index_failure is not None:
                return index_failure

        return cluster_result

    async def _check_cluster(self) -> CheckResult:
        log_data: dict[str, Any] = {"url": self.url + PATH_HEALTH, "method": "GET"}

        try:
            response = await self.probe.cluster_health()
        except ClientError as e:
            logger.error("failed to call elasticsearch", extra={
                "extra_data": {**log_data, "error": e.message}
            })
            return _critical(e.error_code, e.message, e.status_code)

        status_code = response.status_code
        log_data["http_code"] = status_code

        if status_code < 200 or status_code >= 300:
            logger.error("unexpected status code returned in response", extra={
                "extra_data": log_data
            })
            return _critical(ErrorCode.UNEXPECTED_STATUS_CODE, MSG_UNEXPECTED_STATUS_CODE, status_code)

        try:
            cluster_health = _decode_cluster_health(response.body)
        except ValidationError as e:
            logger.error("failed to decode cluster health response", extra={
                "extra_data": {**log_data, "error": str(e)}
            })
            return _critical(ErrorCode.PARSING_ERROR, MSG_PARSING_BODY, status_code)

        log_data["cluster_health"] = cluster_health.status

        if cluster_health.status == ClusterHealthStatus.GREEN.value:
            logger.debug("elasticsearch cluster health green", extra={"extra_data": log_data})
            return CheckResult(HealthStatus.OK, MSG_HEALTHY, status_code)

        if cluster_health.status == ClusterHealthStatus.YELLOW.value:
            severity = HealthStatus.WARNING if self.treat_yellow_as_warning else HealthStatus.OK
            logger.warning("yellow health status", extra={
                "extra_data": {**log_data, "severity": severity.value}
            })
            return CheckResult(severity, MSG_CLUSTER_AT_RISK, status_code, ErrorCode.CLUSTER_AT_RISK)

        if cluster_health.status == ClusterHealthStatus.RED.value:
            logger.error("red health status", extra={"extra_data": log_data})
            return _critical(ErrorCode.CLUSTER_UNHEALTHY, MSG_CLUSTER_UNHEALTHY, status_code)

        logger.error("invalid health status", extra={"extra_data": log_data})
        return _critical(ErrorCode.INVALID_HEALTH_STATUS, MSG_INVALID_HEALTH_STATUS, status_code)

    async def _check_index(self, index: str) -> Optional[CheckResult]:
        log_data: dict[str, Any] = {"url": f"{self.url}/{index}", "method": "HEAD", "index": index}

        try:
            response = await self.probe.index_exists(index)
        except ClientError as e:
            logger.error("failed to call elasticsearch", extra={
                "extra_data": {**log_data, "error": e.message}
            })
            return _critical(e.error_code, e.message, e.status_code)

        log_data["http_code"] = response.status_code

        if response.status_code == 200:
            return None

        if response.status_code == 404:
            logger.error("index does not exist", extra={"extra_data": log_data})
            return _critical(ErrorCode.INDEX_MISSING, MSG_INDEX_DOES_NOT_EXIST, 404)

        logger.error("unexpected status code returned in response", extra={
            "extra_data": log_data
        })
        return _critical(
            ErrorCode.UNEXPECTED_STATUS_CODE, MSG_UNEXPECTED_STATUS_CODE, response.status_code
        )

    async def _check_indexes(self) -> Optional[CheckResult]:
        first_failure: Optional[CheckResult] = None
        missing = []

        for index in self.indexes:
            failure = await self._check_index(index)
            if failure is None:
                continue
            if failure.error_code is ErrorCode.INDEX_MISSING:
                missing.append(index)
            if first_failure is None:
                first_failure = failure
            if self.fail_fast:
                break

        if missing and not self.fail_fast:
            logger.error("required indexes do not exist", extra={
                "extra_data": {"missing_indexes": missing}
            })

        return first_failure
