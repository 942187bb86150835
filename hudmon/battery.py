"""Laptop battery charge, power draw and time remaining from sysfs."""

from __future__ import annotations

import logging
import math
import os

log = logging.getLogger(__name__)

POWER_SUPPLY_DIR = "/sys/class/power_supply"
_MICRO = 1_000_000
_HISTORY_SIZE = 25


def _read_first_line(path: str) -> str | None:
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            line = handle.readline()
    except OSError:
        return None
    if not line:
        return None
    return line.rstrip("\n")


def _read_value(path: str) -> float | None:
    """Read the first line of a file as a number, or None if there is none."""
    line = _read_first_line(path)
    return None if line is None else float(line.strip())


def _divide(a: float, b: float) -> float:
    """Floating division that yields inf or nan instead of raising on zero."""
    if b != 0:
        return a / b
    if a == 0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a) * math.copysign(1.0, b)


class BatteryStats:
    """State of the batteries found under a power-supply directory."""

    def __init__(self, root: str = POWER_SUPPLY_DIR) -> None:
        self.root = root
        self.batt_paths: list[str] = []
        self.state: list[str] = []
        self.current_status = ""
        self.current_watt = 0.0
        self.current_percent = 0.0
        self.remaining_time = 0.0
        self.batt_count = 0
        self.batt_check = False
        self.current_now_history: list[float] = []

    def find_batteries(self) -> int:
        """Find entries whose name contains "BAT"; return how many there are."""
        try:
            names = sorted(entry.name for entry in os.scandir(self.root))
        except OSError:
            names = []
        self.batt_paths = [os.path.join(self.root, name) for name in names if "BAT" in name]
        self.state = [""] * len(self.batt_paths)
        self.batt_count = len(self.batt_paths)
        self.batt_check = True
        return self.batt_count

    def update(self) -> None:
        """Refresh power, percentage and time remaining."""
        if not self.batt_check:
            self.find_batteries()
            if self.batt_count == 0:
                log.error("No battery found")
        if self.batt_count > 0:
            self.current_watt = self.get_power()
            self.current_percent = self.get_percent()
            self.remaining_time = self.get_time_remaining()

    def get_percent(self) -> float:
        """Return the combined charge level in percent."""
        charge_now = 0.0
        charge_full = 0.0
        for path in self.batt_paths:
            if os.path.exists(os.path.join(path, "charge_now")):
                kind = "charge"
            elif os.path.exists(os.path.join(path, "energy_now")):
                kind = "energy"
            else:
                # Only a percentage is available; average the batteries.
                capacity = _read_value(os.path.join(path, "capacity"))
                if capacity is not None:
                    charge_now += capacity / 100
                    charge_full = float(self.batt_count)
                continue
            now = _read_value(os.path.join(path, f"{kind}_now"))
            if now is not None:
                charge_now += now / _MICRO
            full = _read_value(os.path.join(path, f"{kind}_full"))
            if full is not None:
                charge_full += full / _MICRO
        return _divide(charge_now, charge_full) * 100

    def get_power(self) -> float:
        """Return the discharge power in watts; 0 while charging, full or unknown."""
        current = 0.0
        voltage = 0.0
        for index, path in enumerate(self.batt_paths):
            status = _read_first_line(os.path.join(path, "status"))
            if status is not None:
                self.current_status = status
                self.state[index] = status
            if self.state[index] in ("Charging", "Unknown", "Full"):
                return 0.0

            if os.path.exists(os.path.join(path, "current_now")):
                amps = _read_value(os.path.join(path, "current_now"))
                if amps is not None:
                    current += amps / _MICRO
                volts = _read_value(os.path.join(path, "voltage_now"))
                if volts is not None:
                    voltage += volts / _MICRO
            else:
                watts = _read_value(os.path.join(path, "power_now"))
                if watts is not None:
                    current += watts / _MICRO
                    voltage = 1.0
        return current * voltage

    def get_time_remaining(self) -> float:
        """Return hours left, from the remaining charge and recent current draw."""
        charge = 0.0
        for path in self.batt_paths:
            current_now = os.path.join(path, "current_now")
            power_now = os.path.join(path, "power_now")
            if os.path.exists(current_now):
                value = _read_value(current_now)
                if value is not None:
                    self.current_now_history.append(value)
            elif os.path.exists(power_now):
                power = _read_value(power_now) or 0.0
                voltage = _read_value(os.path.join(path, "voltage_now")) or 0.0
                self.current_now_history.append(_divide(power, voltage))

            charge_value = _read_value(os.path.join(path, "charge_now"))
            if charge_value is not None:
                charge += charge_value

            if len(self.current_now_history) > _HISTORY_SIZE:
                del self.current_now_history[0]

        average = _divide(sum(self.current_now_history), len(self.current_now_history))
        return _divide(charge, average)