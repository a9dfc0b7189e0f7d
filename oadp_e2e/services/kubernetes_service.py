"""
Kubernetes service layer: the only place that touches kube config and the
raw client API objects.

Design principles:
  - Config is loaded once per process; every call gets a fresh API object
  - K8s API exceptions are translated to the harness error taxonomy, with the
    original exception chained
"""

import logging
import threading
from contextlib import contextmanager
from typing import Optional, Type

import urllib3
from kubernetes import client, config
from kubernetes.client import ApiException

from oadp_e2e.config import settings
from oadp_e2e.errors import (
    NotFoundError, TransportError, VeleroHarnessError,
)

logger = logging.getLogger("kubernetes_service")

_k8s_loaded = False
_k8s_lock = threading.Lock()


def _ensure_k8s():
    """Load Kubernetes config exactly once."""
    global _k8s_loaded
    if _k8s_loaded:
        return
    with _k8s_lock:
        if _k8s_loaded:
            return
        try:
            if settings.IN_CLUSTER:
                config.load_incluster_config()
            else:
                config.load_kube_config(
                    config_file=settings.KUBECONFIG or None,
                    context=settings.KUBE_CONTEXT or None,
                )
        except config.ConfigException as e:
            raise TransportError(f"Cannot load Kubernetes config: {e}") from e
        logger.debug(f"Kubernetes config loaded (in_cluster={settings.IN_CLUSTER})")
        _k8s_loaded = True


def custom_api() -> client.CustomObjectsApi:
    _ensure_k8s()
    return client.CustomObjectsApi()


def core_api() -> client.CoreV1Api:
    _ensure_k8s()
    return client.CoreV1Api()


def api_version() -> str:
    return f"{settings.CRD_GROUP}/{settings.CRD_VERSION}"


@contextmanager
def translate_api_errors(what: str, on_conflict: Optional[Type[VeleroHarnessError]] = None,
                         conflict_message: str = ""):
    """
    Re-raise client failures inside the block as harness errors.

    404 -> NotFoundError, 409 -> `on_conflict` when given, anything else
    (including an unexpected 409) -> TransportError.
    """
    try:
        yield
    except ApiException as e:
        if e.status == 404:
            raise NotFoundError(f"{what}: not found") from e
        if e.status == 409 and on_conflict is not None:
            raise on_conflict(conflict_message or f"{what}: conflict ({e.reason})") from e
        raise TransportError(f"{what}: API error {e.status} ({e.reason})", status=e.status) from e
    except urllib3.exceptions.HTTPError as e:
        raise TransportError(f"{what}: connection error: {e}") from e
