"""Tests for the configuration module."""

import pytest

from oms_sink.config import SinkConfig, load_config, load_yaml_config

ENV_VARS = [
    "OMS_CUSTOMER_ID",
    "OMS_SHARED_KEY",
    "OMS_LOG_TYPE",
    "FLUSH_INTERVAL",
    "REQUEST_TIMEOUT",
    "QUEUE_SIZE",
    "OMS_ENDPOINT",
    "OMS_API_VERSION",
    "CONFIG_PATH",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    cfg = SinkConfig()
    assert cfg.log_type_prefix == "APP"
    assert cfg.flush_interval == 60.0
    assert cfg.request_timeout == 10.0
    assert cfg.queue_size == 0
    assert cfg.endpoint is None
    assert cfg.api_version == "2016-04-01"
    assert cfg.time_generated_field == "time_generated"


def test_log_types():
    cfg = SinkConfig(log_type_prefix="MYAPP")
    assert cfg.plain_log_type == "MYAPP_LOGS"
    assert cfg.http_log_type == "MYAPP_HTTP"
    assert cfg.log_types == ("MYAPP_LOGS", "MYAPP_HTTP")


def test_from_env(monkeypatch):
    monkeypatch.setenv("OMS_CUSTOMER_ID", "cust")
    monkeypatch.setenv("OMS_SHARED_KEY", "a2V5")
    monkeypatch.setenv("OMS_LOG_TYPE", "SVC")
    monkeypatch.setenv("FLUSH_INTERVAL", "5.5")
    monkeypatch.setenv("REQUEST_TIMEOUT", "3")
    monkeypatch.setenv("QUEUE_SIZE", "1024")
    monkeypatch.setenv("OMS_ENDPOINT", "http://localhost:8080")

    cfg = load_config([])
    assert cfg.customer_id == "cust"
    assert cfg.shared_key == "a2V5"
    assert cfg.log_type_prefix == "SVC"
    assert cfg.flush_interval == 5.5
    assert cfg.request_timeout == 3.0
    assert cfg.queue_size == 1024
    assert cfg.endpoint == "http://localhost:8080"


def test_from_yaml(tmp_path):
    path = tmp_path / "sink.yml"
    path.write_text(
        "customer_id: from-yaml\n"
        "shared_key: a2V5\n"
        "log_type_prefix: YAMLAPP\n"
        "flush_interval: 15\n"
        "queue_size: 10\n"
    )
    cfg = load_config(["--config", str(path)])
    assert cfg.customer_id == "from-yaml"
    assert cfg.log_type_prefix == "YAMLAPP"
    assert cfg.flush_interval == 15.0
    assert cfg.queue_size == 10


def test_config_path_env(tmp_path, monkeypatch):
    path = tmp_path / "sink.yml"
    path.write_text("log_type_prefix: FROMENVPATH\n")
    monkeypatch.setenv("CONFIG_PATH", str(path))
    assert load_config([]).log_type_prefix == "FROMENVPATH"


def test_precedence(tmp_path, monkeypatch):
    path = tmp_path / "sink.yml"
    path.write_text("log_type_prefix: YAML\nflush_interval: 15\nrequest_timeout: 7\n")
    monkeypatch.setenv("OMS_LOG_TYPE", "ENV")
    monkeypatch.setenv("FLUSH_INTERVAL", "20")

    cfg = load_config(["--config", str(path), "--flush-interval", "25"])
    assert cfg.log_type_prefix == "ENV"
    assert cfg.flush_interval == 25.0
    assert cfg.request_timeout == 7.0


def test_cli_args():
    cfg = load_config(
        ["--customer-id", "cli", "--log-type", "CLI", "--queue-size", "5", "--endpoint", "http://x"]
    )
    assert cfg.customer_id == "cli"
    assert cfg.log_type_prefix == "CLI"
    assert cfg.queue_size == 5
    assert cfg.endpoint == "http://x"


def test_unknown_yaml_key_ignored(tmp_path, caplog):
    path = tmp_path / "sink.yml"
    path.write_text("bogus: 1\nlog_type_prefix: OK\n")
    cfg = load_config(["--config", str(path)])
    assert cfg.log_type_prefix == "OK"
    assert "bogus" in caplog.text


def test_missing_yaml_file(tmp_path):
    assert load_yaml_config(str(tmp_path / "missing.yml")) == {}
    assert load_yaml_config(None) == {}


def test_empty_yaml_file(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("")
    assert load_yaml_config(str(path)) == {}


class TestValidate:
    def test_valid(self):
        cfg = SinkConfig(customer_id="c", shared_key="a2V5")
        assert cfg.validate() is cfg

    @pytest.mark.parametrize(
        "overrides",
        [
            {"customer_id": ""},
            {"shared_key": ""},
            {"log_type_prefix": ""},
            {"flush_interval": 0},
            {"request_timeout": -1},
            {"queue_size": -1},
        ],
    )
    def test_invalid(self, overrides):
        kwargs = {"customer_id": "c", "shared_key": "a2V5"}
        kwargs.update(overrides)
        with pytest.raises(ValueError):
            SinkConfig(**kwargs).validate()
