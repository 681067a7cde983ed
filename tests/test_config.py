import json

import pytest

from kinship.config import EngineConfig, config_from_dict, load_config


def test_defaults():
    config = load_config(None)
    assert config == EngineConfig()
    assert config.layout.card_width == 150
    assert config.layout.generation_spacing == 50
    assert config.classifier.max_direct_generations == 4
    assert config.exclude_dissolved_marriages


def test_overrides(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"layout": {"card_width": 200}, "classifier": {"max_ancestor_depth": 6}, "exclude_dissolved_marriages": False}),
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.layout.card_width == 200
    assert config.layout.card_height == 70
    assert config.classifier.max_ancestor_depth == 6
    assert not config.exclude_dissolved_marriages


def test_unknown_keys_rejected():
    with pytest.raises(ValueError):
        config_from_dict({"layout": {"card_depth": 3}})
    with pytest.raises(ValueError):
        config_from_dict({"colour": "blue"})
