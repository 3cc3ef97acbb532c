from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .naming import app_domains, etcd_keys


class Entry(BaseModel):
    """Per-container discovery record stored at /swtch/<container id>.

    Serialized as compact JSON with a fixed field order, so equal entries
    always produce identical bytes.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    domains: list[str] = Field(..., alias="Domains")
    keys: list[str] = Field(..., alias="Keys")
    address: str = Field(..., alias="Addr")

    @model_validator(mode="after")
    def check_shape(self) -> "Entry":
        if len(self.keys) != len(self.domains):
            raise ValueError(f"{len(self.keys)} keys for {len(self.domains)} domains")
        if not self.address:
            raise ValueError("Addr must not be empty")
        return self

    @classmethod
    def build(cls, container_id: str, image: str, name: str, address: str) -> "Entry":
        domains = app_domains(container_id, image, name)
        return cls(domains=domains, keys=etcd_keys(domains), address=address)

    def dumps(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def loads(cls, raw: str) -> "Entry":
        return cls.model_validate_json(raw)


class AddressEnvelope(BaseModel):
    """Value written at each /skydns key; read by SkyDNS."""

    host: str

    def dumps(self) -> str:
        return self.model_dump_json()
