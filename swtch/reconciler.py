from __future__ import annotations

import random
import time
from threading import Lock, Thread
from typing import Any, Callable, TypeVar

from .docker_ops import InspectError
from .etcd import EtcdError, EtcdUnavailable, KeyNotFound, NodeExists
from .events import ContainerEvent, extract_containers
from .logs import log_event
from .models import AddressEnvelope, Entry
from .naming import entry_path
from .runtime import RuntimeState
from .settings import settings

T = TypeVar("T")

CREATED = "created"
REPLACED = "replaced"
UNCHANGED = "unchanged"
DELETED = "deleted"
ABSENT = "absent"

# Failures of a single collaborator call. Retried, then the container is skipped.
TRANSIENT_ERRORS = (InspectError, EtcdUnavailable)


class ConsistencyError(Exception):
    """The store changed under us (replace of a missing entry, key collision)."""


class EventStreamClosed(Exception):
    """The docker event stream ended while the registrar was supposed to run."""


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Exponential backoff with up to 10% jitter."""
    delay = min(base_delay * (2**attempt), max_delay)
    return delay + random.uniform(0, delay * 0.1)


class Reconciler:
    """Converges the store to the current state of one container.

    Holds no state between calls: the previous entry is always re-read
    from the store.
    """

    def __init__(
        self,
        inspector: Any,
        store: Any,
        retry_attempts: int | None = None,
        retry_base_delay_s: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.inspector = inspector
        self.store = store
        self.retry_attempts = max(1, int(settings.retry_attempts if retry_attempts is None else retry_attempts))
        self.retry_base_delay_s = settings.retry_base_delay_s if retry_base_delay_s is None else retry_base_delay_s
        self._sleep = sleep

    def _call(self, fn: Callable[..., T], *args: Any) -> T:
        for attempt in range(self.retry_attempts):
            try:
                return fn(*args)
            except TRANSIENT_ERRORS as e:
                if attempt + 1 >= self.retry_attempts:
                    raise
                delay = backoff_delay(attempt, self.retry_base_delay_s, settings.retry_max_delay_s)
                log_event("WARNING", f"{e} (retry {attempt + 1}/{self.retry_attempts - 1} in {delay:.2f}s)")
                self._sleep(delay)
        raise AssertionError("unreachable")

    def _delete_quietly(self, key: str) -> None:
        try:
            self._call(self.store.delete, key)
        except KeyNotFound:
            pass

    def _create(self, key: str, value: str) -> None:
        attempts = 0

        def create() -> None:
            nonlocal attempts
            attempts += 1
            try:
                self.store.create(key, value)
            except NodeExists:
                # An earlier attempt may have been applied before its response was lost.
                if attempts > 1 and self._load(key) == value:
                    return
                raise

        try:
            self._call(create)
        except NodeExists as e:
            raise ConsistencyError(f"{key} already exists") from e

    def _load(self, path: str) -> str | None:
        try:
            return self._call(self.store.get, path)
        except KeyNotFound:
            return None

    def _rollback(self, path: str, keys: list[str]) -> None:
        """Best-effort removal of a half-written entry so the next event rebuilds it."""
        for key in keys + [path]:
            try:
                self.store.delete(key)
            except KeyNotFound:
                pass
            except EtcdError as e:
                log_event("ERROR", f"Could not roll back {key}: {e}")

    def reconcile(self, container_id: str) -> str:
        info = self._call(self.inspector.inspect, container_id)
        # Names and id prefixes resolve to the same container; key on its full id.
        if info.exists and info.id:
            container_id = info.id
        action = "set" if info.exists and info.address else "del"
        log_event("INFO", f"{action}: {container_id} {info.image} {info.name} {info.address}", container_id)

        path = entry_path(container_id)
        prior_data = self._load(path)
        prior = Entry.loads(prior_data) if prior_data is not None else None

        if action == "del":
            if prior is None:
                return ABSENT
            for key in prior.keys:
                self._delete_quietly(key)
            self._delete_quietly(path)
            return DELETED

        entry = Entry.build(container_id, info.image, info.name, info.address)
        data = entry.dumps()
        if prior is not None and data == prior_data:
            return UNCHANGED

        if prior is not None:
            for key in prior.keys:
                self._delete_quietly(key)

        envelope = AddressEnvelope(host=entry.address).dumps()
        try:
            if prior is not None:
                try:
                    self._call(self.store.update, path, data)
                except KeyNotFound as e:
                    raise ConsistencyError(f"{path} vanished before it could be replaced") from e
            else:
                self._create(path, data)
            for key in entry.keys:
                self._create(key, envelope)
        except TRANSIENT_ERRORS:
            self._rollback(path, entry.keys)
            raise
        return REPLACED if prior is not None else CREATED


class Registrar:
    """Feeds docker events to the reconciler, one container at a time.

    Transient collaborator failures skip the container; anything else stops
    the registrar and is handed to ``on_fatal``.
    """

    def __init__(
        self,
        reconciler: Reconciler,
        runtime: RuntimeState | None = None,
        on_fatal: Callable[[BaseException], None] | None = None,
    ):
        self.reconciler = reconciler
        self.runtime = runtime or RuntimeState()
        self.on_fatal = on_fatal
        self._lock = Lock()
        self._stop = False
        self._stream: Any = None
        self._thr: Thread | None = None

    def start(self) -> None:
        if self._thr and self._thr.is_alive():
            return
        self._stop = False
        self._thr = Thread(target=self._loop, name="swtch-registrar", daemon=True)
        self._thr.start()

    def stop(self) -> None:
        self._stop = True
        close = getattr(self._stream, "close", None)
        if close is not None:
            close()

    def _loop(self) -> None:
        try:
            self.run()
        except Exception as e:
            if self._stop:
                return
            self.fail(e)
        else:
            if not self._stop:
                self.fail(EventStreamClosed("docker event stream closed"))

    def run(self) -> None:
        log_event("INFO", "Registrar started")
        self._stream = self.reconciler.inspector.events()
        for raw in self._stream:
            if self._stop:
                break
            self.handle(raw)
        log_event("INFO", "Registrar stopped: event stream closed")

    def handle(self, raw: dict[str, Any]) -> dict[str, str]:
        event = ContainerEvent.parse(raw)
        self.runtime.mark_event()
        results: dict[str, str] = {}
        for container_id in extract_containers(event):
            outcome = self.reconcile_one(container_id)
            if outcome is not None:
                results[container_id] = outcome
        return results

    def reconcile_one(self, container_id: str) -> str | None:
        with self._lock:
            try:
                outcome = self.reconciler.reconcile(container_id)
            except TRANSIENT_ERRORS as e:
                log_event("ERROR", f"Skipping container: {type(e).__name__}: {e}", container_id)
                self.runtime.mark_skipped(container_id, e)
                return None
        log_event("INFO", outcome, container_id)
        self.runtime.mark_outcome(outcome)
        return outcome

    def fail(self, err: BaseException) -> None:
        log_event("CRITICAL", f"Registrar halted: {type(err).__name__}: {err}")
        self.runtime.mark_fatal(err)
        self._stop = True
        if self.on_fatal is not None:
            self.on_fatal(err)
