"""Configuration dataclasses and YAML loading."""

from pathlib import Path

import pytest

from broadcast_stabilizer.config import (
    EstimatorConfig,
    HsvRange,
    OverlayRegion,
    StabilizationConfig,
    load_config,
)

_DEFAULT_YAML = Path(__file__).resolve().parent.parent / "configs" / "default.yaml"


def test_defaults_match_reference_calibration():
    config = StabilizationConfig()
    assert (config.border_width, config.border_height) == (60, 60)
    assert (config.field_dilation, config.field_erosion) == (1, 5)
    assert (config.public_erosion, config.public_dilation) == (5, 20)
    assert config.singularity_border == 80
    assert config.conditioning_blur == 30
    assert config.grass_hsv == HsvRange((35, 50, 100), (70, 255, 200))
    assert config.overlay == OverlayRegion(left=80, top=40, width=290, height=40)
    assert config.border_offset == (30, 30)


def test_from_dict_partial_override():
    config = StabilizationConfig.from_dict(
        {
            "border_width": 40,
            "overlay": {"left": 10, "top": 5},
            "grass_hsv": {"lower": [30, 40, 90]},
            "estimator": {"ransac_threshold": 1.5},
        }
    )
    assert config.border_width == 40
    assert config.border_height == 60
    assert config.overlay == OverlayRegion(left=10, top=5, width=290, height=40)
    assert config.grass_hsv.lower == (30, 40, 90)
    assert config.grass_hsv.upper == (70, 255, 200)
    assert config.estimator == EstimatorConfig(ransac_threshold=1.5)


def test_from_dict_empty_or_none_gives_defaults():
    assert StabilizationConfig.from_dict(None) == StabilizationConfig()
    assert StabilizationConfig.from_dict({}) == StabilizationConfig()


@pytest.mark.parametrize(
    "data",
    [
        {"border_widht": 40},
        {"overlay": {"x": 1}},
        {"overlay": [1, 2, 3, 4]},
    ],
)
def test_from_dict_rejects_bad_input(data):
    with pytest.raises(ValueError):
        StabilizationConfig.from_dict(data)


def test_invalid_values_rejected():
    with pytest.raises(ValueError):
        StabilizationConfig(border_width=-2)
    with pytest.raises(ValueError):
        StabilizationConfig(conditioning_blur=0)


def test_load_config_missing_file_returns_empty(tmp_path):
    assert load_config(tmp_path / "missing.yaml") == {}


def test_load_config_reads_yaml(tmp_path):
    config_path = tmp_path / "custom.yaml"
    config_path.write_text("stride: 2\nstabilization:\n  border_width: 20\n")

    config = load_config(config_path)

    assert config["stride"] == 2
    assert StabilizationConfig.from_dict(config["stabilization"]).border_width == 20


def test_load_config_rejects_non_mapping(tmp_path):
    config_path = tmp_path / "list.yaml"
    config_path.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError):
        load_config(config_path)


def test_shipped_default_yaml_matches_builtin_defaults():
    config = load_config(_DEFAULT_YAML)
    assert StabilizationConfig.from_dict(config["stabilization"]) == StabilizationConfig()
    assert config["on_failure"] == "identity"
