from swtch.events import ContainerEvent, extract_containers

CID = "f" * 64
OTHER = "e" * 64


def test_container_event_with_same_actor_attribute_is_deduplicated():
    event = ContainerEvent.parse(
        {"Type": "container", "Action": "start", "id": CID, "Actor": {"ID": CID, "Attributes": {"container": CID}}}
    )
    assert extract_containers(event) == [CID]


def test_container_event():
    event = ContainerEvent.parse({"Type": "container", "Action": "die", "id": CID, "Actor": {"ID": CID}})
    assert extract_containers(event) == [CID]


def test_network_event_references_container_attribute():
    event = ContainerEvent.parse(
        {"Type": "network", "Action": "connect", "Actor": {"ID": "netid", "Attributes": {"container": CID, "name": "bridge"}}}
    )
    assert extract_containers(event) == [CID]


def test_non_container_event_without_attribute_is_ignored():
    event = ContainerEvent.parse({"Type": "image", "Action": "pull", "id": "redis:7", "Actor": {"ID": "redis:7"}})
    assert extract_containers(event) == []


def test_empty_container_attribute_is_ignored():
    event = ContainerEvent.parse({"Type": "volume", "Action": "mount", "Actor": {"Attributes": {"container": ""}}})
    assert extract_containers(event) == []


def test_both_ids_sorted():
    event = ContainerEvent.parse({"Type": "container", "id": CID, "Actor": {"Attributes": {"container": OTHER}}})
    assert extract_containers(event) == [OTHER, CID]


def test_actor_id_used_when_legacy_id_missing():
    event = ContainerEvent.parse({"Type": "container", "Action": "start", "Actor": {"ID": CID, "Attributes": None}})
    assert extract_containers(event) == [CID]
