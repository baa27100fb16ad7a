import json

import pytest

from cutplan.config import AppConfig, config_from_dict, load_config, parse_rotations


def test_defaults():
    config = AppConfig()
    assert config.cutting.power == 1.5
    assert config.cutting.gas == 'nitrogen'
    assert config.sheet.width == 1250
    assert config.nesting.rotations == (0, 90)


def test_parse_rotations():
    assert parse_rotations("0, 90,180") == (0, 90, 180)
    assert parse_rotations([0, "90"]) == (0, 90)
    assert parse_rotations("") == ()


@pytest.mark.parametrize("value", [["inf"], "0,-inf", [float("nan")], [1e999]])
def test_parse_rotations_rejects_non_finite(value):
    with pytest.raises(ValueError):
        parse_rotations(value)


def test_config_from_dict_coerces_values():
    config = config_from_dict({
        "sheet": {"width": "3000", "quantity": "4"},
        "nesting": {"rotations": "0,90,180"},
        "cutting": {"gas": "oxygen", "base_cut_speeds": {"3": "1800"}},
    })
    assert config.sheet.width == 3000.0
    assert config.sheet.quantity == 4
    assert config.sheet.height == 2500
    assert config.nesting.rotations == (0, 90, 180)
    assert config.cutting.gas == "oxygen"
    assert config.cutting.base_cut_speeds == {"3": 1800.0}


def test_invalid_values_keep_defaults(caplog):
    config = config_from_dict({
        "pricing": {"price_per_meter": "abc"},
        "cutting": {"cut_speeds": [1, 2]},
        "sheet": "wide",
        "unknown": {"x": 1},
    })
    assert config.pricing.price_per_meter == 100.0
    assert config.cutting.cut_speeds == {}
    assert config.sheet.width == 1250
    assert "price_per_meter" in caplog.text


def test_load_config_without_path():
    assert load_config("") == AppConfig()


def test_load_config_missing_file(tmp_path):
    assert load_config(str(tmp_path / "missing.json")) == AppConfig()


def test_load_config_from_file(tmp_path):
    path = tmp_path / "cutplan.json"
    path.write_text(json.dumps({"pricing": {"price_per_pierce": 12.5}, "cutting": {"thickness": 6}}))
    config = load_config(str(path))
    assert config.pricing.price_per_pierce == 12.5
    assert config.cutting.thickness == 6.0


def test_load_config_bad_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    assert load_config(str(path)) == AppConfig()


def test_load_config_non_object(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2]")
    assert load_config(str(path)) == AppConfig()


def test_to_dict():
    data = AppConfig().to_dict()
    assert data["pricing"]["machine_hour_price"] == 1200.0
    assert set(data) == {"cutting", "pricing", "sheet", "nesting"}


def test_non_finite_values_keep_defaults():
    config = config_from_dict({"nesting": {"rotations": [float("inf")]}, "sheet": {"quantity": float("inf")}})
    assert config.nesting.rotations == (0, 90)
    assert config.sheet.quantity == 1


def test_load_config_with_overflowing_rotation(tmp_path):
    path = tmp_path / "huge.json"
    path.write_text('{"nesting": {"rotations": [1e999]}, "cutting": {"thickness": 4}}')
    config = load_config(str(path))
    assert config.nesting.rotations == (0, 90)
    assert config.cutting.thickness == 4.0
