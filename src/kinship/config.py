"""Engine configuration."""

from dataclasses import dataclass, field, fields
import json
from pathlib import Path


@dataclass
class ClassifierConfig:
    # Deepest direct-line label (4 = "2nd Great-Grandfather")
    max_direct_generations: int = 4
    # Bound on the ancestor walk used for cousin detection
    max_ancestor_depth: int = 10


@dataclass
class LayoutConfig:
    card_width: float = 150
    card_height: float = 70
    sibling_spacing: float = 35
    branch_spacing: float = 80
    spouse_spacing: float = 35
    generation_spacing: float = 50
    anchor_x: float = 1500
    start_y: float = 100
    fragment_gap: float = 60
    # Connector offsets between parallel line systems
    line_system_offset: float = 2.5
    bastard_line_drop: float = 5


@dataclass
class EngineConfig:
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    # Ignore divorced marriages when picking each person's current spouse
    exclude_dissolved_marriages: bool = True


def _update(target, values: dict):
    known = {f.name for f in fields(target)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown {type(target).__name__} keys: {sorted(unknown)}")
    for key, value in values.items():
        setattr(target, key, value)


def config_from_dict(data: dict) -> EngineConfig:
    """Build an EngineConfig, overriding defaults with the given sections."""
    config = EngineConfig()
    data = dict(data)
    _update(config.classifier, data.pop("classifier", {}))
    _update(config.layout, data.pop("layout", {}))
    _update(config, data)
    return config


def load_config(path: Path | None) -> EngineConfig:
    """Load configuration from a JSON file, or return defaults when no path is given."""
    if path is None:
        return EngineConfig()
    with open(path, "r", encoding="utf-8") as fh:
        return config_from_dict(json.load(fh))
