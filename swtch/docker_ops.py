from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

import docker
import requests
from docker.errors import DockerException, NotFound

from .settings import settings


class InspectError(Exception):
    """The docker engine could not be asked about a container; worth retrying."""


@dataclass(frozen=True)
class ContainerInfo:
    exists: bool
    address: str = ""
    name: str = ""
    image: str = ""
    id: str = ""


MISSING = ContainerInfo(exists=False)


def container_address(info: dict[str, Any], network: str = "") -> str:
    """Address from an inspect payload.

    With no network configured this is the default bridge address; otherwise
    the address of the endpoint on that network.
    """
    net = info.get("NetworkSettings") or {}
    if not network:
        return net.get("IPAddress") or ""
    endpoint = (net.get("Networks") or {}).get(network) or {}
    return endpoint.get("IPAddress") or ""


class DockerInspector:
    """Inspector and event source backed by the docker engine API."""

    def __init__(self, client: docker.DockerClient | None = None, network: str | None = None):
        self._docker = client
        self.network = settings.docker_network if network is None else network

    def _client(self) -> docker.DockerClient:
        if self._docker is None:
            try:
                self._docker = docker.from_env(timeout=settings.docker_timeout_s)
            except DockerException as e:
                raise InspectError(f"Docker is not available: {e}") from e
        return self._docker

    def available(self) -> bool:
        try:
            self._client().ping()
            return True
        except (InspectError, DockerException, requests.exceptions.RequestException):
            return False

    def inspect(self, container_id: str) -> ContainerInfo:
        try:
            info = self._client().api.inspect_container(container_id)
        except NotFound:
            return MISSING
        except (DockerException, requests.exceptions.RequestException) as e:
            raise InspectError(f"inspect {container_id}: {type(e).__name__}: {e}") from e

        config = info.get("Config") or {}
        return ContainerInfo(
            exists=True,
            address=container_address(info, self.network),
            name=info.get("Name") or "",
            image=config.get("Image") or "",
            id=info.get("Id") or "",
        )

    def events(self) -> Iterator[dict[str, Any]]:
        """Decoded engine events, starting now. Blocks until the stream closes."""
        return self._client().events(decode=True)
