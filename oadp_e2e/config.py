"""
Configuration module: all settings from env vars with sensible defaults.

Test drivers override these per run (CI exports VELERO_BUCKET, KUBECONFIG, ...)
rather than editing code.
"""
import logging
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    # Kubernetes
    KUBECONFIG: str = os.environ.get("KUBECONFIG", "")
    KUBE_CONTEXT: str = os.environ.get("KUBE_CONTEXT", "")
    IN_CLUSTER: bool = os.environ.get("IN_CLUSTER", "false").lower() == "true"

    # CRD
    CRD_GROUP: str = "oadp.openshift.io"
    CRD_VERSION: str = "v1alpha1"
    CRD_PLURAL: str = "veleros"
    CRD_KIND: str = "Velero"

    # Velero instance under test
    VELERO_NAMESPACE: str = os.environ.get("VELERO_NAMESPACE", "oadp-operator")
    VELERO_INSTANCE_NAME: str = os.environ.get("VELERO_INSTANCE_NAME", "example-velero")
    VELERO_PROVIDER: str = os.environ.get("VELERO_PROVIDER", "aws")
    VELERO_REGION: str = os.environ.get("VELERO_REGION", "us-east-1")
    VELERO_BUCKET: str = os.environ.get("VELERO_BUCKET", "")
    VELERO_SECRET_NAME: str = os.environ.get("VELERO_SECRET_NAME", "cloud-credentials")

    # Workload
    VELERO_LABEL_SELECTOR: str = os.environ.get("VELERO_LABEL_SELECTOR", "component=velero")
    VELERO_CONTAINER: str = os.environ.get("VELERO_CONTAINER", "velero")
    VELERO_POD_PREFIX: str = os.environ.get("VELERO_POD_PREFIX", "velero-")

    # Polling (seconds)
    POLL_INTERVAL: float = float(os.environ.get("POLL_INTERVAL", "5"))
    POLL_TIMEOUT: float = float(os.environ.get("POLL_TIMEOUT", "120"))

    # Logging
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")


settings = Settings()


def setup_logging(level: str = ""):
    """Configure root logging for a test run. The library itself never calls this."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
