from __future__ import annotations

import os
import signal

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from swtch.docker_ops import DockerInspector
from swtch.etcd import EtcdStore, EtcdUnavailable, KeyNotFound
from swtch.logs import log_event, setup_logging
from swtch.models import Entry
from swtch.naming import InvalidContainerId, entry_path
from swtch.reconciler import Reconciler, Registrar
from swtch.runtime import RuntimeState

app = FastAPI(title="swtch registrar")

runtime = RuntimeState()
store = EtcdStore.from_settings()
registrar: Registrar | None = None


def _terminate(err: BaseException) -> None:
    # Fatal registrar errors take the whole process down.
    log_event("CRITICAL", "Terminating process")
    os.kill(os.getpid(), signal.SIGTERM)


def build_registrar() -> Registrar:
    return Registrar(Reconciler(DockerInspector(), store), runtime, on_fatal=_terminate)


def start_watcher() -> None:
    if registrar is not None:
        registrar.start()


@app.on_event("startup")
def startup() -> None:
    global registrar
    setup_logging()
    registrar = build_registrar()
    start_watcher()


@app.on_event("shutdown")
def shutdown() -> None:
    if registrar is not None:
        registrar.stop()
    store.close()


@app.get("/health")
def health():
    body = runtime.snapshot()
    body["etcd"] = store.ping()
    body["docker"] = registrar is not None and registrar.reconciler.inspector.available()
    if runtime.healthy and body["etcd"] and body["docker"]:
        return {"status": "healthy", **body}
    return JSONResponse(status_code=503, content={"status": "unhealthy", **body})


@app.get("/entries/{container_id}")
def get_entry(container_id: str):
    try:
        raw = store.get(entry_path(container_id))
    except KeyNotFound:
        raise HTTPException(status_code=404, detail=f"No entry for {container_id}")
    except EtcdUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return Entry.loads(raw).model_dump(by_alias=True)


@app.post("/entries/{container_id}/reconcile")
def reconcile_entry(container_id: str):
    if registrar is None or not runtime.healthy:
        raise HTTPException(status_code=503, detail="Registrar is not running")
    try:
        outcome = registrar.reconcile_one(container_id)
    except InvalidContainerId as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        registrar.fail(e)
        raise HTTPException(status_code=500, detail=f"{type(e).__name__}: {e}")
    if outcome is None:
        raise HTTPException(status_code=503, detail=runtime.snapshot()["last_error"])
    return {"container_id": container_id, "outcome": outcome}
