# costing.py
# Laser cutting time and cost for a parsed part, from cut length and pierce count.
# Cutting limits per laser power and assist gas live in CUT_TABLE; prices and speeds come from the
# AppConfig passed in by the caller.

import logging
import math
from dataclasses import asdict, dataclass

# power kW -> max thickness mm per gas, base pierce time s per gas
CUT_TABLE = {
    0.5: {"max": {"oxygen": 6, "nitrogen": 3, "air": 4}, "pierce": {"oxygen": 2.0, "nitrogen": 1.5, "air": 2.5}},
    1.0: {"max": {"oxygen": 10, "nitrogen": 6, "air": 8}, "pierce": {"oxygen": 1.5, "nitrogen": 1.0, "air": 2.0}},
    1.5: {"max": {"oxygen": 15, "nitrogen": 10, "air": 12}, "pierce": {"oxygen": 1.2, "nitrogen": 0.8, "air": 1.5}},
    2.0: {"max": {"oxygen": 25, "nitrogen": 20, "air": 18}, "pierce": {"oxygen": 1.0, "nitrogen": 0.6, "air": 1.2}},
}
GASES = ("oxygen", "nitrogen", "air")
GAS_FACTOR = {"nitrogen": 4.0, "oxygen": 2.0, "air": 1.0}
FALLBACK_BASE_SPEED = 2000  # mm/min
MIN_SPEED = 100  # mm/min


class CuttingParamsError(ValueError):
    """Power, gas or thickness the machine cannot cut."""


@dataclass(frozen=True)
class CutParams:
    speed: float      # mm/min
    pierce: float     # s per pierce
    gas_cons: float


@dataclass(frozen=True)
class CostEstimate:
    cut_min: float
    pierce_min: float
    total_min: float
    cut_cost: float
    pierce_cost: float
    gas_cost: float
    machine_cost: float
    total_cost: float

    def scaled(self, parts):
        """The same estimate for `parts` copies, e.g. one nested sheet."""
        return CostEstimate(**{k: v * parts for k, v in asdict(self).items()})

    def to_dict(self):
        return asdict(self)


def table_key(value):
    """Config key for a numeric value: 3.0 -> "3", 1.5 -> "1.5"."""
    return f"{float(value):g}"


def supported_powers():
    return sorted(CUT_TABLE)


def supported_gases():
    return list(GASES)


def max_thickness(power, gas):
    entry = CUT_TABLE.get(float(power))
    if entry is None or gas not in entry["max"]:
        return None
    return entry["max"][gas]


def calc_cut_params(power, thickness, gas, cutting_config):
    """Speed, pierce time and gas consumption for one machine setup. Raises CuttingParamsError."""
    try:
        power = float(power)
        thickness = float(thickness)
    except (TypeError, ValueError):
        raise CuttingParamsError(f"Power and thickness must be numbers, got {power!r}, {thickness!r}")
    if power not in CUT_TABLE:
        raise CuttingParamsError(f"Unsupported laser power: {power} kW. Supported: {supported_powers()}")
    if gas not in GASES:
        raise CuttingParamsError(f"Unsupported assist gas: {gas}. Supported: {supported_gases()}")
    if not math.isfinite(thickness) or thickness <= 0:
        raise CuttingParamsError("Thickness must be a positive number")
    limit = max_thickness(power, gas)
    if thickness > limit:
        raise CuttingParamsError(f"Not enough power for {thickness} mm with {gas} (max {limit} mm)")

    th_key, power_key = table_key(thickness), table_key(power)
    base = cutting_config.base_cut_speeds.get(th_key)
    multiplier = cutting_config.power_multipliers.get(power_key)
    if base and multiplier:
        speed = round(base * multiplier)
        logging.debug(f"Speed calculation: {base} x {multiplier} = {speed} mm/min")
    elif cutting_config.cut_speeds.get(th_key):
        speed = cutting_config.cut_speeds[th_key]
        logging.debug(f"Using flat cut_speeds table: {speed} mm/min")
    else:
        speed = max(round(FALLBACK_BASE_SPEED * (1 - thickness / (limit * 1.5)) ** 0.6), MIN_SPEED)
        logging.warning(f"No configured speed for {thickness} mm at {power} kW, using calculated speed: {speed}")

    pierce = CUT_TABLE[power]["pierce"][gas] * (1 + (thickness / limit) * 2)
    gas_cons = (thickness / 3) * GAS_FACTOR[gas]
    return CutParams(speed, pierce, gas_cons)


def estimate_cost(total_length_m, pierce_count, cut_params, pricing):
    """Per-part time (minutes) and cost split into cutting, pierces, gas and machine time."""
    cut_min = total_length_m * 1000 / cut_params.speed
    pierce_min = pierce_count * cut_params.pierce / 60
    total_min = cut_min + pierce_min

    cut_cost = pricing.price_per_meter * total_length_m
    pierce_cost = pricing.price_per_pierce * pierce_count
    gas_cost = pricing.gas_price_per_minute * total_min * (cut_params.gas_cons / 4 if cut_params.gas_cons else 1)
    machine_cost = pricing.machine_hour_price / 60 * total_min
    total_cost = cut_cost + pierce_cost + gas_cost + machine_cost

    logging.info(f"Cost estimate: length={total_length_m:.3f} m, pierces={pierce_count}, "
                 f"time={total_min:.2f} min, total={total_cost:.2f}")
    return CostEstimate(cut_min, pierce_min, total_min, cut_cost, pierce_cost, gas_cost, machine_cost, total_cost)
