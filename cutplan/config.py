# cutplan/config.py
# Environment settings (.env aware) and the explicit AppConfig passed to anything that needs tunable values.
import json
import logging
import math
import os
from dataclasses import asdict, dataclass, field, fields

from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()

SECRET_KEY = os.getenv('FLASK_SECRET_KEY', 'cutplan-dev-key')
CONFIG_FILE = os.getenv('CUTPLAN_CONFIG', '')
LOG_FILE = os.getenv('CUTPLAN_LOG_FILE', 'error.log')
MAX_CONTENT_LENGTH = int(os.getenv('MAX_CONTENT_LENGTH', 10 * 1024 * 1024))  # 10 MB uploads


@dataclass
class CuttingConfig:
    power: float = 1.5          # kW
    gas: str = 'nitrogen'
    thickness: float = 3.0      # mm
    # mm/min by thickness key ("3", "1.5"), scaled per power key; cut_speeds is the flat fallback table
    base_cut_speeds: dict = field(default_factory=dict)
    power_multipliers: dict = field(default_factory=dict)
    cut_speeds: dict = field(default_factory=dict)


@dataclass
class PricingConfig:
    price_per_meter: float = 100.0
    price_per_pierce: float = 50.0
    gas_price_per_minute: float = 15.0
    machine_hour_price: float = 1200.0


@dataclass
class SheetConfig:
    width: float = 1250.0
    height: float = 2500.0
    margin: float = 10.0
    spacing: float = 5.0
    quantity: int = 1


@dataclass
class NestingConfig:
    rotations: tuple = (0, 90)


@dataclass
class AppConfig:
    cutting: CuttingConfig = field(default_factory=CuttingConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    sheet: SheetConfig = field(default_factory=SheetConfig)
    nesting: NestingConfig = field(default_factory=NestingConfig)

    def to_dict(self):
        return asdict(self)


def parse_rotations(value):
    """Accept "0,90" or [0, 90]."""
    if isinstance(value, str):
        value = [v for v in value.split(',') if v.strip()]
    rotations = []
    for v in value:
        angle = float(v)
        if not math.isfinite(angle):
            raise ValueError(f"rotation must be a finite angle, got {v!r}")
        rotations.append(int(angle))
    return tuple(rotations)


def _coerce(default, value):
    if isinstance(default, dict):
        if not isinstance(value, dict):
            raise ValueError(f"expected an object, got {value!r}")
        return {str(k): float(v) for k, v in value.items()}
    if isinstance(default, tuple):
        return parse_rotations(value)
    if isinstance(default, str):
        return str(value)
    if isinstance(default, int):
        return int(value)
    return float(value)


def _apply_section(section, data, name):
    for f in fields(section):
        if f.name not in data:
            continue
        current = getattr(section, f.name)
        try:
            setattr(section, f.name, _coerce(current, data[f.name]))
        except (TypeError, ValueError, OverflowError) as e:
            logging.warning(f"Invalid {name}.{f.name} in config: {data[f.name]!r} ({e}); keeping {current!r}")


def config_from_dict(data):
    """Build an AppConfig from a nested dict; unknown keys are ignored, bad values keep their defaults."""
    config = AppConfig()
    for f in fields(config):
        section_data = data.get(f.name) or {}
        if not isinstance(section_data, dict):
            logging.warning(f"Config section {f.name} must be an object, got {section_data!r}")
            continue
        _apply_section(getattr(config, f.name), section_data, f.name)
    return config


def load_config(path=None):
    """Load AppConfig from a JSON file, falling back to defaults if it is missing or unreadable."""
    path = path or CONFIG_FILE
    if not path:
        logging.info("No CUTPLAN_CONFIG set, using default configuration")
        return AppConfig()
    if not os.path.exists(path):
        logging.warning(f"Config file not found: {path}. Using default configuration.")
        return AppConfig()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logging.error(f"Failed to load config from {path}: {e}")
        return AppConfig()
    if not isinstance(data, dict):
        logging.error(f"Config file {path} must contain a JSON object")
        return AppConfig()
    logging.info(f"Configuration loaded from {path}")
    return config_from_dict(data)
