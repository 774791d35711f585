"""Tests for mind_config: defaults, overrides, JSON file loading."""

import json
import logging

import pytest

from mind_config import (
    DriverConfig,
    MindConfig,
    MonitoringConfig,
    NetworkConfig,
    load_mind_config,
)


class TestDefaults:

    def test_sections(self):
        cfg = load_mind_config()
        assert isinstance(cfg, MindConfig)
        assert isinstance(cfg.network, NetworkConfig)
        assert isinstance(cfg.driver, DriverConfig)
        assert isinstance(cfg.monitoring, MonitoringConfig)

    def test_default_values(self):
        cfg = MindConfig()
        assert cfg.network.neurons == 100
        assert cfg.network.seed is None
        assert cfg.network.dtype == "float32"
        assert cfg.driver.report_interval == 1.0
        assert cfg.driver.max_ticks is None
        assert cfg.monitoring.http_enabled is False
        assert cfg.monitoring.event_log_enabled is False

    def test_instances_do_not_share_sections(self):
        a, b = MindConfig(), MindConfig()
        a.network.neurons = 5
        assert b.network.neurons == 100

    def test_to_dict(self):
        data = MindConfig().to_dict()
        assert data["network"]["neurons"] == 100
        assert set(data) == {"network", "driver", "monitoring"}


class TestOverrides:

    def test_dict_overrides(self):
        cfg = load_mind_config({"network": {"neurons": 12, "seed": 3}})
        assert cfg.network.neurons == 12
        assert cfg.network.seed == 3
        assert cfg.driver.report_interval == 1.0

    def test_unknown_keys_ignored(self):
        cfg = load_mind_config({"network": {"bogus": 1}, "nonsection": {"x": 1}})
        assert not hasattr(cfg.network, "bogus")

    def test_json_file(self, tmp_path):
        path = tmp_path / "mind.json"
        path.write_text(json.dumps({"driver": {"max_ticks": 50, "report_interval": 0.5}}))
        cfg = load_mind_config(config_path=str(path))
        assert cfg.driver.max_ticks == 50
        assert cfg.driver.report_interval == 0.5

    def test_dict_wins_over_file(self, tmp_path):
        path = tmp_path / "mind.json"
        path.write_text(json.dumps({"network": {"neurons": 10, "seed": 1}}))
        cfg = load_mind_config({"network": {"neurons": 20}}, config_path=str(path))
        assert cfg.network.neurons == 20
        assert cfg.network.seed == 1

    def test_missing_file_uses_defaults(self, tmp_path):
        cfg = load_mind_config(config_path=str(tmp_path / "absent.json"))
        assert cfg.network.neurons == 100

    def test_corrupt_file_warns(self, tmp_path, caplog):
        path = tmp_path / "mind.json"
        path.write_text("{not json")
        with caplog.at_level(logging.WARNING, logger="mind.config"):
            cfg = load_mind_config(config_path=str(path))
        assert cfg.network.neurons == 100
        assert "Failed to load config" in caplog.text
