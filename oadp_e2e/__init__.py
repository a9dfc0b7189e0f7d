"""
OADP e2e harness: Velero CR lifecycle and workload polling helpers.
"""

from oadp_e2e.errors import (
    AlreadyExistsError, ConflictError, NotFoundError, PollTimeoutError, TransportError,
    VeleroHarnessError,
)
from oadp_e2e.models import DefaultPlugin, FailureLine, VeleroSpec
from oadp_e2e.poller import ConditionFunc, poll
from oadp_e2e.services.workload_service import (
    extract_failure_lines, fetch_container_logs, fetch_pod_logs, fetch_pods, get_failure_lines,
    is_velero_pod_running,
)
from oadp_e2e.velero import VeleroCustomResource, get_run_prefix

__all__ = [
    "AlreadyExistsError", "ConditionFunc", "ConflictError", "DefaultPlugin", "FailureLine",
    "NotFoundError", "PollTimeoutError", "TransportError", "VeleroCustomResource",
    "VeleroHarnessError", "VeleroSpec", "extract_failure_lines", "fetch_container_logs",
    "fetch_pod_logs", "fetch_pods", "get_failure_lines", "get_run_prefix", "is_velero_pod_running", "poll",
]
