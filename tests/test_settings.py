import logging

from swtch import settings as settings_mod
from swtch.logs import get_logging_config, log_event


def test_etcd_url_prefers_explicit_setting(monkeypatch):
    monkeypatch.setenv("SWTCH_ETCD_URL", "http://etcd.internal:4001/")
    assert settings_mod._etcd_url() == "http://etcd.internal:4001"


def test_etcd_url_from_docker_link(monkeypatch):
    monkeypatch.delenv("SWTCH_ETCD_URL", raising=False)
    monkeypatch.setenv("ETCD_PORT_2379_TCP_ADDR", "172.17.0.5")
    monkeypatch.setenv("ETCD_PORT_2379_TCP_PORT", "2379")
    assert settings_mod._etcd_url() == "http://172.17.0.5:2379"


def test_etcd_url_default(monkeypatch):
    for name in ("SWTCH_ETCD_URL", "ETCD_PORT_2379_TCP_ADDR", "ETCD_PORT_2379_TCP_PORT"):
        monkeypatch.delenv(name, raising=False)
    assert settings_mod._etcd_url() == "http://127.0.0.1:2379"


def test_env_numbers_fall_back_on_garbage(monkeypatch):
    monkeypatch.setenv("SWTCH_RETRY_ATTEMPTS", "lots")
    monkeypatch.setenv("SWTCH_ETCD_TIMEOUT_S", "2.5")
    assert settings_mod._env_int("SWTCH_RETRY_ATTEMPTS", 3) == 3
    assert settings_mod._env_float("SWTCH_ETCD_TIMEOUT_S", 1.0) == 2.5


def test_log_event_prefixes_short_container_id(caplog):
    caplog.set_level(logging.INFO, logger="swtch")
    log_event("info", "set: created", "a1b2c3d4e5f67890")
    assert caplog.records[-1].getMessage() == "[a1b2c3d4e5f6] set: created"
    assert caplog.records[-1].levelno == logging.INFO


def test_logging_config_level():
    cfg = get_logging_config("debug")
    assert cfg["loggers"]["swtch"]["level"] == "DEBUG"
    assert cfg["loggers"]["httpx"]["level"] == "WARNING"
