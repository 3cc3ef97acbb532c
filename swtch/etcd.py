"""Minimal etcd v2 keys API client (the subset the registrar needs).

Only four operations are used: get, create (prevExist=false), update
(prevExist=true) and delete. Absence and conflicts are reported as
``KeyNotFound`` / ``NodeExists`` so callers can treat them as states.
"""
from __future__ import annotations

from typing import Any

import httpx

from .settings import settings

# https://etcd.io/docs/v2.3/errorcode/
ECODE_KEY_NOT_FOUND = 100
ECODE_NODE_EXIST = 105


class EtcdError(Exception):
    def __init__(self, message: str, error_code: int | None = None, key: str | None = None):
        super().__init__(message)
        self.error_code = error_code
        self.key = key


class KeyNotFound(EtcdError):
    pass


class NodeExists(EtcdError):
    pass


class EtcdUnavailable(EtcdError):
    """Connection failure, timeout or 5xx; worth retrying."""


class EtcdStore:
    def __init__(self, base_url: str, timeout_s: float = 1.0, client: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout_s, follow_redirects=True)

    @classmethod
    def from_settings(cls) -> "EtcdStore":
        return cls(settings.etcd_url, timeout_s=settings.etcd_timeout_s)

    def close(self) -> None:
        self._client.close()

    def _url(self, key: str) -> str:
        if not key.startswith("/"):
            key = "/" + key
        return f"{self.base_url}/v2/keys{key}"

    def _request(self, method: str, key: str, **kwargs: Any) -> dict[str, Any]:
        try:
            resp = self._client.request(method, self._url(key), **kwargs)
        except httpx.HTTPError as e:
            raise EtcdUnavailable(f"{method} {key}: {type(e).__name__}: {e}", key=key) from e

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if resp.is_success:
            return data

        code = data.get("errorCode") if isinstance(data, dict) else None
        message = data.get("message", resp.reason_phrase) if isinstance(data, dict) else resp.reason_phrase
        detail = f"{method} {key}: {message} (HTTP {resp.status_code})"
        if code == ECODE_KEY_NOT_FOUND:
            raise KeyNotFound(detail, code, key)
        if code == ECODE_NODE_EXIST:
            raise NodeExists(detail, code, key)
        if resp.status_code >= 500:
            raise EtcdUnavailable(detail, code, key)
        raise EtcdError(detail, code, key)

    def get(self, key: str) -> str:
        data = self._request("GET", key)
        node = data.get("node") or {}
        if node.get("dir"):
            raise EtcdError(f"GET {key}: is a directory", key=key)
        return node.get("value", "")

    def create(self, key: str, value: str) -> None:
        self._request("PUT", key, params={"prevExist": "false"}, data={"value": value})

    def update(self, key: str, value: str) -> None:
        self._request("PUT", key, params={"prevExist": "true"}, data={"value": value})

    def delete(self, key: str) -> None:
        self._request("DELETE", key)

    def ping(self) -> bool:
        try:
            resp = self._client.get(f"{self.base_url}/version")
            return resp.is_success
        except httpx.HTTPError:
            return False
