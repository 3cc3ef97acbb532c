from __future__ import annotations

import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _etcd_url() -> str:
    """Explicit SWTCH_ETCD_URL wins; otherwise use docker link variables."""
    url = os.getenv("SWTCH_ETCD_URL")
    if url:
        return url.rstrip("/")
    addr = os.getenv("ETCD_PORT_2379_TCP_ADDR") or "127.0.0.1"
    port = os.getenv("ETCD_PORT_2379_TCP_PORT") or "2379"
    return f"http://{addr}:{port}"


@dataclass(frozen=True)
class Settings:
    # Store
    etcd_url: str = _etcd_url()
    etcd_timeout_s: float = _env_float("SWTCH_ETCD_TIMEOUT_S", 1.0)

    # Inspector
    docker_timeout_s: int = _env_int("SWTCH_DOCKER_TIMEOUT_S", 10)
    # Empty means the default bridge address (NetworkSettings.IPAddress).
    docker_network: str = os.getenv("SWTCH_DOCKER_NETWORK", "")

    # Retries for transient store/inspector failures
    retry_attempts: int = _env_int("SWTCH_RETRY_ATTEMPTS", 3)
    retry_base_delay_s: float = _env_float("SWTCH_RETRY_BASE_DELAY_S", 0.5)
    retry_max_delay_s: float = _env_float("SWTCH_RETRY_MAX_DELAY_S", 10.0)

    # Process
    log_level: str = os.getenv("SWTCH_LOG_LEVEL", "INFO").upper()
    api_host: str = os.getenv("SWTCH_API_HOST", "0.0.0.0")
    api_port: int = _env_int("SWTCH_API_PORT", 8000)


settings = Settings()
