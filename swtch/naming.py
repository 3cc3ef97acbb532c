"""Discovery names and SkyDNS key paths derived from container identity."""
from __future__ import annotations

DOMAIN_SUFFIX = "switch"
SKYDNS_PREFIX = "/skydns"
ENTRY_PREFIX = "/swtch"

SHORT_ID_LEN = 12


class InvalidContainerId(ValueError):
    pass


def validate_container_id(container_id: str) -> None:
    if len(container_id) < SHORT_ID_LEN:
        raise InvalidContainerId(
            f"Invalid container id {container_id!r}: expected at least {SHORT_ID_LEN} characters."
        )


def normalize_image(image: str) -> str:
    """'registry.example.com/library/redis:7' -> 'redis'."""
    image = image[image.rfind("/") + 1 :]
    idx = image.find(":")
    if idx >= 0:
        image = image[:idx]
    return image


def normalize_name(name: str) -> str:
    """'/myredis' -> 'myredis'."""
    return name[name.rfind("/") + 1 :]


def app_domains(container_id: str, image: str, name: str) -> list[str]:
    """Return the three discovery domains for a container, sorted.

    An empty image or name yields names with a doubled or leading dot;
    callers are expected to pass both.
    """
    validate_container_id(container_id)
    short_id = container_id[:SHORT_ID_LEN]
    image = normalize_image(image)
    name = normalize_name(name)
    return sorted(
        [
            f"{short_id}.{DOMAIN_SUFFIX}",
            f"{name}.{image}.{DOMAIN_SUFFIX}",
            f"{short_id}.{image}.{DOMAIN_SUFFIX}",
        ]
    )


def etcd_key(domain: str) -> str:
    """'abc.redis.switch' -> '/skydns/switch/redis/abc'."""
    labels = domain.split(".")
    labels.reverse()
    return f"{SKYDNS_PREFIX}/" + "/".join(labels)


def etcd_keys(domains: list[str]) -> list[str]:
    # Sorted on their own: keys[i] does not necessarily belong to domains[i].
    return sorted(etcd_key(d) for d in domains)


def entry_path(container_id: str) -> str:
    return f"{ENTRY_PREFIX}/{container_id}"
