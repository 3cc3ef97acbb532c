import dataclasses
import os as _os
import sys

import pytest

# Ensure project root is importable (so `import main` works without installing)
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from swtch.docker_ops import MISSING, ContainerInfo  # noqa: E402
from swtch.etcd import KeyNotFound, NodeExists  # noqa: E402

CONTAINER_ID = "a1b2c3d4e5f67890" + "0" * 48


class FakeStore:
    """In-memory etcd keys API with an operation log."""

    def __init__(self, data=None):
        self.data = dict(data or {})
        self.ops = []
        self.failures = {}  # op -> list of exceptions raised before succeeding

    def _maybe_fail(self, op):
        queue = self.failures.get(op)
        if queue:
            raise queue.pop(0)

    def get(self, key):
        self._maybe_fail("get")
        if key not in self.data:
            raise KeyNotFound(f"{key} not found", 100, key)
        return self.data[key]

    def create(self, key, value):
        self.ops.append(("create", key))
        self._maybe_fail("create")
        if key in self.data:
            raise NodeExists(f"{key} exists", 105, key)
        self.data[key] = value

    def update(self, key, value):
        self.ops.append(("update", key))
        self._maybe_fail("update")
        if key not in self.data:
            raise KeyNotFound(f"{key} not found", 100, key)
        self.data[key] = value

    def delete(self, key):
        self.ops.append(("delete", key))
        self._maybe_fail("delete")
        if key not in self.data:
            raise KeyNotFound(f"{key} not found", 100, key)
        del self.data[key]

    def ping(self):
        return True

    def close(self):
        pass


class FakeInspector:
    def __init__(self, containers=None, events=None):
        self.containers = dict(containers or {})
        self.failures = []
        self.calls = []
        self._events = list(events or [])

    def _resolve(self, ref):
        """Docker accepts full ids, unique id prefixes and names."""
        if ref in self.containers:
            return ref
        for full_id, info in self.containers.items():
            if full_id.startswith(ref) or info.name.lstrip("/") == ref:
                return full_id
        return None

    def inspect(self, container_id):
        self.calls.append(container_id)
        if self.failures:
            raise self.failures.pop(0)
        full_id = self._resolve(container_id)
        if full_id is None:
            return MISSING
        info = self.containers[full_id]
        return dataclasses.replace(info, id=info.id or full_id)

    def available(self):
        return True

    def events(self):
        return iter(self._events)


def redis_info(address="172.17.0.2"):
    return ContainerInfo(
        exists=True,
        address=address,
        name="/myredis",
        image="registry.example.com/library/redis:7",
    )


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def inspector():
    return FakeInspector({CONTAINER_ID: redis_info()})


@pytest.fixture(autouse=True)
def _plain_logging(monkeypatch):
    """Leave log handling to pytest instead of installing the console handler."""
    monkeypatch.setattr("swtch.logs._configured", True)
