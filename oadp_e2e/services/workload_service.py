"""
Workload inspection: Velero pods and their container logs.

Aggregation over several matching pods is explicit:
  - pod running check: satisfied if ANY matching pod is Running
  - container logs: ALL matching pods, in pod-name order
"""

import logging
from typing import Dict, List, Optional

from kubernetes.client import V1Pod

from oadp_e2e.config import settings
from oadp_e2e.errors import VeleroHarnessError
from oadp_e2e.models import FailureLine
from oadp_e2e.poller import ConditionFunc
from oadp_e2e.services.kubernetes_service import core_api, translate_api_errors

logger = logging.getLogger("workload_service")

ERROR_MARKER = "level=error"
LOG_CHUNK_SIZE = 64 * 1024


def fetch_pods(namespace: str, label_selector: Optional[str] = None) -> List[V1Pod]:
    """List the pods matching a label selector. Always hits the API server."""
    selector = label_selector or settings.VELERO_LABEL_SELECTOR
    with translate_api_errors(f"list pods {namespace} [{selector}]"):
        pods = core_api().list_namespaced_pod(namespace=namespace, label_selector=selector)
    return list(pods.items or [])


def is_velero_pod_running(namespace: str, label_selector: Optional[str] = None) -> ConditionFunc:
    """Condition: at least one matching pod is in phase Running."""
    def condition() -> bool:
        pods = fetch_pods(namespace, label_selector)
        if not pods:
            logger.debug(f"No Velero pods in {namespace} yet")
            return False
        for pod in pods:
            if pod.status is not None and pod.status.phase == "Running":
                return True
        phases = ", ".join(
            f"{p.metadata.name}={p.status.phase if p.status else 'Unknown'}" for p in pods
        )
        logger.debug(f"Velero pods not running yet: {phases}")
        return False
    return condition


def _read_container_log(namespace: str, pod_name: str, container: str) -> str:
    api = core_api()
    with translate_api_errors(f"logs {namespace}/{pod_name}[{container}]"):
        resp = api.read_namespaced_pod_log(
            name=pod_name,
            namespace=namespace,
            container=container,
            _preload_content=False,
        )
        try:
            data = b"".join(resp.stream(LOG_CHUNK_SIZE))
        finally:
            resp.close()
            resp.release_conn()
    return data.decode("utf-8", errors="replace")


def fetch_pod_logs(namespace: str, container: Optional[str] = None,
                   pod_prefix: Optional[str] = None,
                   label_selector: Optional[str] = None) -> Dict[str, str]:
    """
    Logs of `container` from every Velero pod whose name starts with `pod_prefix`,
    keyed by pod name in name order.

    Ordering by name keeps the result independent of the order the API server
    happens to list pods in.
    """
    container = container or settings.VELERO_CONTAINER
    pod_prefix = settings.VELERO_POD_PREFIX if pod_prefix is None else pod_prefix

    pods = [p for p in fetch_pods(namespace, label_selector) if p.metadata.name.startswith(pod_prefix)]
    logs = {}
    for pod in sorted(pods, key=lambda p: p.metadata.name):
        logs[pod.metadata.name] = _read_container_log(
            pod.metadata.namespace or namespace, pod.metadata.name, container,
        )
    return logs


def fetch_container_logs(namespace: str, container: Optional[str] = None,
                         pod_prefix: Optional[str] = None,
                         label_selector: Optional[str] = None) -> str:
    """Logs of all matching pods (see fetch_pod_logs) joined into one text."""
    joined = ""
    for log_text in fetch_pod_logs(namespace, container, pod_prefix, label_selector).values():
        if joined and not joined.endswith("\n"):
            joined += "\n"
        joined += log_text
    return joined


def extract_failure_lines(log_text: str, pod: Optional[str] = None) -> List[FailureLine]:
    """
    Lines containing `level=error`, in order, with their 1-based line numbers.

    Lines are split on "\\n" only, and a trailing "\\r" is dropped, so CRLF
    logs number the same as LF logs.
    """
    return [
        FailureLine(line_number=number, text=line.rstrip("\r"), pod=pod)
        for number, line in enumerate(log_text.split("\n"), start=1)
        if ERROR_MARKER in line
    ]


def get_failure_lines(namespace: str, container: Optional[str] = None,
                      pod_prefix: Optional[str] = None,
                      label_selector: Optional[str] = None) -> Optional[List[FailureLine]]:
    """
    Best-effort error lines from the Velero container of every matching pod.

    Line numbers count within each pod's own log, and each line names its pod.
    Returns None when the logs could not be read ("diagnostics unavailable"),
    as opposed to [] which means the logs were read and are clean.
    """
    try:
        pod_logs = fetch_pod_logs(namespace, container, pod_prefix, label_selector)
    except VeleroHarnessError as e:
        logger.warning(f"Cannot get Velero container logs in {namespace}: {e}")
        return None
    failures = [
        line
        for pod_name, log_text in pod_logs.items()
        for line in extract_failure_lines(log_text, pod=pod_name)
    ]
    if failures:
        logger.info(f"Found {len(failures)} error line(s) in Velero logs in {namespace}")
    return failures
