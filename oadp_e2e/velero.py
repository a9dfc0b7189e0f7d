"""
Velero CR lifecycle for e2e tests.

A VeleroCustomResource describes one Velero instance (name, namespace and
backup storage location settings) and can create, read, update and delete it
in the cluster. Every call goes straight to the API server; nothing is cached
apart from the last built document.
"""

import logging
import threading
import uuid
from typing import List, Mapping, Optional, Union

from oadp_e2e.config import settings
from oadp_e2e.errors import AlreadyExistsError, ConflictError, NotFoundError
from oadp_e2e.models import (
    BackupStorageLocationSpec, DefaultPlugin, ObjectStorageLocation, SecretKeySelector, VeleroSpec,
)
from oadp_e2e.poller import ConditionFunc, poll
from oadp_e2e.services.kubernetes_service import api_version, custom_api, translate_api_errors
from oadp_e2e.services.workload_service import is_velero_pod_running

logger = logging.getLogger("velero")

DEFAULT_PLUGINS = [DefaultPlugin.OPENSHIFT, DefaultPlugin.AWS]

_run_prefix: Optional[str] = None
_run_prefix_lock = threading.Lock()


def get_run_prefix() -> str:
    """
    Object storage prefix shared by everything in this process.

    Generated on first call and fixed for the rest of the process, so
    concurrent test runs against the same bucket never share keys.
    """
    global _run_prefix
    if _run_prefix is None:
        with _run_prefix_lock:
            if _run_prefix is None:
                _run_prefix = f"velero-e2e-{uuid.uuid4()}"
                logger.info(f"Run prefix: {_run_prefix}")
    return _run_prefix


def reset_run_prefix():
    """Forget the run prefix. Only meant for tests."""
    global _run_prefix
    with _run_prefix_lock:
        _run_prefix = None


class VeleroCustomResource:
    def __init__(
        self,
        name: str = settings.VELERO_INSTANCE_NAME,
        namespace: str = settings.VELERO_NAMESPACE,
        bucket: str = settings.VELERO_BUCKET,
        region: str = settings.VELERO_REGION,
        provider: str = settings.VELERO_PROVIDER,
        secret_name: Optional[str] = settings.VELERO_SECRET_NAME,
        plugins: Optional[List[DefaultPlugin]] = None,
        enable_restic: bool = True,
        prefix: Optional[str] = None,
    ):
        if not name or not namespace:
            raise ValueError("Velero CR needs both a name and a namespace")
        self._name = name
        self._namespace = namespace
        self.bucket = bucket
        self.region = region
        self.provider = provider
        self.secret_name = secret_name
        self.plugins = list(DEFAULT_PLUGINS if plugins is None else plugins)
        self.enable_restic = enable_restic
        self.prefix = prefix or get_run_prefix()
        self.custom_resource: Optional[dict] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def namespace(self) -> str:
        return self._namespace

    def __repr__(self) -> str:
        return f"VeleroCustomResource({self._namespace}/{self._name})"

    def _key(self) -> str:
        return f"Velero {self._namespace}/{self._name}"

    def build_spec(self) -> VeleroSpec:
        location = BackupStorageLocationSpec(
            provider=self.provider,
            config={"region": self.region},
            default=True,
            objectStorage=ObjectStorageLocation(bucket=self.bucket, prefix=self.prefix),
            credential=SecretKeySelector(name=self.secret_name) if self.secret_name else None,
        )
        return VeleroSpec(
            enableRestic=self.enable_restic,
            backupStorageLocations=[location],
            defaultVeleroPlugins=self.plugins,
        )

    def build(self) -> dict:
        """Populate `custom_resource` from the current fields. No I/O."""
        self.custom_resource = {
            "apiVersion": api_version(),
            "kind": settings.CRD_KIND,
            "metadata": {
                "name": self._name,
                "namespace": self._namespace,
            },
            "spec": self.build_spec().to_dict(),
        }
        return self.custom_resource

    def create(self) -> dict:
        """
        Create the built CR.

        Raises AlreadyExistsError if it is already there: a leftover from an
        earlier run is a failure, not something to adopt.
        """
        if self.custom_resource is None:
            self.build()
        with translate_api_errors(
            f"create {self._key()}",
            on_conflict=AlreadyExistsError,
            conflict_message=f"found unexpected existing {self._key()}, left behind by an earlier run",
        ):
            result = custom_api().create_namespaced_custom_object(
                settings.CRD_GROUP, settings.CRD_VERSION, self._namespace,
                settings.CRD_PLURAL, self.custom_resource,
            )
        logger.info(f"{self._key()} created")
        return result

    def get(self) -> dict:
        """Fetch the CR as stored. Raises NotFoundError if absent."""
        with translate_api_errors(f"get {self._key()}"):
            return custom_api().get_namespaced_custom_object(
                settings.CRD_GROUP, settings.CRD_VERSION, self._namespace,
                settings.CRD_PLURAL, self._name,
            )

    def create_or_update(self, spec: Union[VeleroSpec, Mapping]) -> dict:
        """
        Make the CR's spec equal to `spec`, creating the CR if it is absent.

        Only NotFoundError from the read leads to a create; every other
        failure propagates. An existing CR keeps its metadata and only has
        its spec replaced.
        """
        desired = spec.to_dict() if isinstance(spec, VeleroSpec) else dict(spec)
        try:
            current = self.get()
        except NotFoundError:
            current = None

        if current is None:
            logger.info(f"{self._key()} not found, creating")
            self.build()
            self.custom_resource["spec"] = desired
            return self.create()

        current["spec"] = desired
        with translate_api_errors(f"update {self._key()}", on_conflict=ConflictError):
            result = custom_api().replace_namespaced_custom_object(
                settings.CRD_GROUP, settings.CRD_VERSION, self._namespace,
                settings.CRD_PLURAL, self._name, current,
            )
        logger.info(f"{self._key()} updated")
        return result

    def delete(self) -> bool:
        """Delete the CR. Returns True if deleted, False if it was already gone."""
        try:
            with translate_api_errors(f"delete {self._key()}"):
                custom_api().delete_namespaced_custom_object(
                    settings.CRD_GROUP, settings.CRD_VERSION, self._namespace,
                    settings.CRD_PLURAL, self._name,
                )
        except NotFoundError:
            logger.info(f"{self._key()} already gone")
            return False
        logger.info(f"{self._key()} deletion initiated")
        return True

    def is_deleted(self) -> ConditionFunc:
        """Condition: the CR no longer exists. Errors other than 404 abort the poll."""
        def condition() -> bool:
            try:
                self.get()
            except NotFoundError:
                return True
            return False
        return condition

    def wait_for_deletion(self, interval: Optional[float] = None, timeout: Optional[float] = None):
        poll(self.is_deleted(), interval, timeout, description=f"{self._key()} to be deleted")

    def wait_for_running(self, interval: Optional[float] = None, timeout: Optional[float] = None):
        poll(is_velero_pod_running(self._namespace), interval, timeout,
             description=f"Velero pod in {self._namespace} to be Running")
