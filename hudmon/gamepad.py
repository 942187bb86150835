"""Battery state of game controllers listed under the power-supply class."""

from __future__ import annotations

import os
from dataclasses import dataclass

POWER_SUPPLY_DIR = "/sys/class/power_supply"

# (name fragments in the sysfs entry, display name), in the order they are checked.
_KINDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("gip", "xpadneo"), "XBOX PAD"),
    (("sony_controller",), "DS4 PAD"),
    (("ps-controller",), "DS5 PAD"),
    (("nintendo_switch_controller",), "SWITCH PAD"),
    (("hid-e4",), "8BITDO PAD"),
)


@dataclass
class Gamepad:
    """One controller and its battery state."""

    name: str = ""
    battery: str = ""
    report_percent: bool = False
    battery_percent: str = ""
    is_charging: bool = False


def scan_gamepads(root: str = POWER_SUPPLY_DIR) -> list[str]:
    """Return the paths of controller entries under ``root``.

    An entry matching several name fragments is listed once per match.
    """
    paths: list[str] = []
    for name in sorted(entry.name for entry in os.scandir(root)):
        path = os.path.join(root, name)
        for fragments, _ in _KINDS:
            paths.extend(path for fragment in fragments if fragment in name)
    return paths


def _kind_matches(path: str, fragments: tuple[str, ...]) -> bool:
    return any(fragment in path for fragment in fragments)


def _first_line(path: str) -> str | None:
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            line = handle.readline()
    except OSError:
        return None
    return line.rstrip("\n") if line else None


def _battery_level(percent: int) -> str | None:
    if 0 <= percent <= 25:
        return "Low"
    if 26 <= percent <= 49:
        return "Normal"
    if 50 <= percent <= 74:
        return "High"
    if 75 <= percent <= 100:
        return "Full"
    return None


def gamepad_info(paths: list[str]) -> list[Gamepad]:
    """Read the state of each controller path; the result is sorted by name.

    A controller is numbered ("XBOX PAD-2") only when more than one of its
    kind is present.
    """
    totals = [sum(_kind_matches(p, fragments) for p in paths) for fragments, _ in _KINDS]
    counters = [0] * len(_KINDS)
    pads: list[Gamepad] = []

    for path in paths:
        pad = Gamepad()
        for index, (fragments, label) in enumerate(_KINDS):
            if not _kind_matches(path, fragments):
                continue
            counters[index] += 1
            pad.name = label if totals[index] == 1 else f"{label}-{counters[index]}"

        status = _first_line(os.path.join(path, "status"))
        if status in ("Charging", "Full"):
            pad.is_charging = True

        capacity_path = os.path.join(path, "capacity")
        if os.path.exists(capacity_path):
            line = _first_line(capacity_path)
            if line is not None:
                pad.battery_percent = line
                pad.report_percent = True
                level = _battery_level(int(line.strip()))
                if level is not None:
                    pad.battery = level
        else:
            line = _first_line(os.path.join(path, "capacity_level"))
            if line is not None:
                pad.battery = line

        pads.append(pad)

    pads.sort(key=lambda pad: pad.name)
    return pads