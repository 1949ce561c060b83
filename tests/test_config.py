import json

import pytest

import map_config
from confidence_map.config import ConfidenceConfig, load_config


def test_defaults_come_from_map_config():
    cfg = load_config()
    assert cfg.sigma == map_config.ROBOT_LOCAL_RADIUS
    assert cfg.travel_weight == map_config.TRAVEL_WEIGHT
    assert cfg.bound_weight == map_config.BOUND_WEIGHT
    assert cfg.ghpr_param == map_config.GHPR_PARAM


def test_derived_values():
    cfg = ConfidenceConfig(sigma=5.0, odom_raw_hz=50.0, sampling_hz=2.0,
                           past_view_duration=5.0, region_grow_radius=0.5,
                           bound_defend_rate=1.5)
    assert cfg.no_touch_threshold == pytest.approx(0.9)
    assert cfg.odom_sampling_num == 25
    assert cfg.past_odom_num == 10
    assert cfg.bound_defend_radius == pytest.approx(0.75)


def test_derived_counts_never_drop_below_one():
    cfg = ConfidenceConfig(odom_raw_hz=1.0, sampling_hz=2.0, past_view_duration=0.0)
    assert cfg.odom_sampling_num == 1
    assert cfg.past_odom_num == 1


def test_json_file_then_overrides(tmp_path):
    path = tmp_path / "params.json"
    path.write_text(json.dumps({"sigma": 3.0, "resolution": 0.25}))

    cfg = load_config(str(path), resolution=0.5)

    assert cfg.sigma == 3.0
    assert cfg.resolution == 0.5


def test_unknown_keys_are_rejected(tmp_path):
    with pytest.raises(ValueError, match="robot_radius"):
        load_config(robot_radius=2.0)

    path = tmp_path / "params.json"
    path.write_text(json.dumps({"sigmaa": 3.0}))
    with pytest.raises(ValueError, match="sigmaa"):
        load_config(str(path))


def test_to_dict_round_trips():
    cfg = load_config(sigma=4.0)
    assert ConfidenceConfig(**cfg.to_dict()) == cfg


def test_zero_sigma_threshold_does_not_raise():
    assert ConfidenceConfig(sigma=0.0).no_touch_threshold == float("-inf")
