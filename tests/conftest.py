import copy
from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client import ApiException, V1PodList

from oadp_e2e.velero import reset_run_prefix


class FakeCustomObjectsApi:
    """In-memory stand-in for kubernetes.client.CustomObjectsApi (namespaced calls only)."""

    def __init__(self):
        self.objects: dict[tuple[str, str], dict] = {}
        self.calls: list[str] = []
        self.fail_with: dict[str, ApiException] = {}

    def _maybe_fail(self, op: str):
        self.calls.append(op)
        if op in self.fail_with:
            raise self.fail_with[op]

    def create_namespaced_custom_object(self, group, version, namespace, plural, body):
        self._maybe_fail("create")
        key = (namespace, body["metadata"]["name"])
        if key in self.objects:
            raise ApiException(status=409, reason="Conflict")
        stored = copy.deepcopy(body)
        stored["metadata"]["resourceVersion"] = "1"
        stored["metadata"]["uid"] = f"uid-{len(self.calls)}"
        self.objects[key] = stored
        return copy.deepcopy(stored)

    def get_namespaced_custom_object(self, group, version, namespace, plural, name):
        self._maybe_fail("get")
        if (namespace, name) not in self.objects:
            raise ApiException(status=404, reason="Not Found")
        return copy.deepcopy(self.objects[(namespace, name)])

    def replace_namespaced_custom_object(self, group, version, namespace, plural, name, body):
        self._maybe_fail("replace")
        current = self.objects.get((namespace, name))
        if current is None:
            raise ApiException(status=404, reason="Not Found")
        if body["metadata"].get("resourceVersion") != current["metadata"]["resourceVersion"]:
            raise ApiException(status=409, reason="Conflict")
        stored = copy.deepcopy(body)
        stored["metadata"]["resourceVersion"] = str(int(current["metadata"]["resourceVersion"]) + 1)
        self.objects[(namespace, name)] = stored
        return copy.deepcopy(stored)

    def delete_namespaced_custom_object(self, group, version, namespace, plural, name):
        self._maybe_fail("delete")
        if (namespace, name) not in self.objects:
            raise ApiException(status=404, reason="Not Found")
        del self.objects[(namespace, name)]
        return {"status": "Success"}


@pytest.fixture(autouse=True)
def fresh_run_prefix():
    reset_run_prefix()
    yield
    reset_run_prefix()


@pytest.fixture
def fake_custom_api():
    api = FakeCustomObjectsApi()
    with patch("oadp_e2e.velero.custom_api", return_value=api):
        yield api


@pytest.fixture
def mock_core_api():
    api = MagicMock()
    api.list_namespaced_pod.return_value = V1PodList(items=[])
    with patch("oadp_e2e.services.workload_service.core_api", return_value=api):
        yield api
