import json

import pytest

from utils.config_loader import (
    ControlSettings,
    load_config,
    load_settings_from_config,
    save_config,
)


def test_default_policy_file_is_loaded():
    config = load_config()

    settings = config["settings"]
    assert settings.settling_delay_seconds == 3
    assert settings.default_estimated_delay == 15
    assert settings.idle_machine_threshold == 2
    assert settings.job_sort_key == "-created_date"
    assert len(config["seed"]["machine"]) == 4


def test_missing_sections_fall_back_to_defaults():
    settings = load_settings_from_config({"disruption": {"settling_delay_seconds": 0.5}})

    assert settings.settling_delay_seconds == 0.5
    assert settings.job_list_limit == 50
    assert settings.llm.model == "llama-3.3-70b-versatile"


def test_json_config(tmp_path):
    path = tmp_path / "policy.json"
    path.write_text(json.dumps({"alerts": {"idle_machine_threshold": 4}}))

    config = load_config(str(path))

    assert config["settings"].idle_machine_threshold == 4
    assert config["seed"] == {"machine": [], "worker": [], "job": []}


def test_saved_config_loads_back(tmp_path):
    path = tmp_path / "policy.yaml"
    settings = ControlSettings(settling_delay_seconds=1.5, trend_window=8)

    save_config(settings, str(path), seed={"machine": [{"id": "m-1", "name": "CNC-01"}]})
    config = load_config(str(path))

    assert config["settings"] == settings
    assert config["seed"]["machine"] == [{"id": "m-1", "name": "CNC-01"}]


def test_negative_settling_delay_is_rejected():
    with pytest.raises(ValueError, match="settling_delay_seconds"):
        ControlSettings(settling_delay_seconds=-1)
