"""CPU load, clock, temperature and power readings from procfs and sysfs."""

from __future__ import annotations

import enum
import logging
import os
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from hudmon.file_utils import LsFlags, file_exists, ls, read_line

log = logging.getLogger(__name__)

_NUMS = r"\s+".join([r"(\d+)"] * 10)
_TOTAL_RE = re.compile(r"cpu\s+" + _NUMS)
_CORE_RE = re.compile(r"cpu(\d{1,4})\s+" + _NUMS)
_CORE_ID_RE = re.compile(r"cpu(\d{1,4})")
_BTIME_RE = re.compile(r"btime\s+(-?\d+)")
_INT_RE = re.compile(r"\s*([+-]?\d+)")


def _read_int(path: str) -> int | None:
    """Read the leading integer of a file, or None if it cannot be read."""
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            text = handle.read()
    except OSError:
        return None
    match = _INT_RE.match(text)
    return int(match.group(1)) if match else None


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding towards zero."""
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def _wrap_sub(a: int, b: int) -> int:
    return a - b if a > b else 0


@dataclass
class CpuTimes:
    """One line of jiffy counters from /proc/stat."""

    user: int = 0
    nice: int = 0
    system: int = 0
    idle: int = 0
    iowait: int = 0
    irq: int = 0
    softirq: int = 0
    steal: int = 0
    guest: int = 0
    guest_nice: int = 0


@dataclass
class CPUData:
    """Accumulated times, last-period deltas and derived values for one CPU."""

    total_time: int = 0
    user_time: int = 0
    system_time: int = 0
    system_all_time: int = 0
    idle_all_time: int = 0
    idle_time: int = 0
    nice_time: int = 0
    io_wait_time: int = 0
    irq_time: int = 0
    soft_irq_time: int = 0
    steal_time: int = 0
    guest_time: int = 0

    total_period: int = 0
    user_period: int = 0
    system_period: int = 0
    system_all_period: int = 0
    idle_all_period: int = 0
    idle_period: int = 0
    nice_period: int = 0
    io_wait_period: int = 0
    irq_period: int = 0
    soft_irq_period: int = 0
    steal_period: int = 0
    guest_period: int = 0

    cpu_id: int = 0
    percent: float = 0.0
    mhz: int = 0
    temp: int = 0
    cpu_mhz: int = 0
    power: float = 0.0


def calculate_cpu_data(cpu: CPUData, times: CpuTimes) -> None:
    """Update ``cpu`` with new counters, computing periods and load percent."""
    # Guest time is already accounted in user time.
    user = times.user - times.guest
    nice = times.nice - times.guest_nice
    idle_all = times.idle + times.iowait
    system_all = times.system + times.irq + times.softirq
    virt_all = times.guest + times.guest_nice
    total = user + nice + system_all + idle_all + times.steal + virt_all

    cpu.user_period = _wrap_sub(user, cpu.user_time)
    cpu.nice_period = _wrap_sub(nice, cpu.nice_time)
    cpu.system_period = _wrap_sub(times.system, cpu.system_time)
    cpu.system_all_period = _wrap_sub(system_all, cpu.system_all_time)
    cpu.idle_all_period = _wrap_sub(idle_all, cpu.idle_all_time)
    cpu.idle_period = _wrap_sub(times.idle, cpu.idle_time)
    cpu.io_wait_period = _wrap_sub(times.iowait, cpu.io_wait_time)
    cpu.irq_period = _wrap_sub(times.irq, cpu.irq_time)
    cpu.soft_irq_period = _wrap_sub(times.softirq, cpu.soft_irq_time)
    cpu.steal_period = _wrap_sub(times.steal, cpu.steal_time)
    cpu.guest_period = _wrap_sub(virt_all, cpu.guest_time)
    cpu.total_period = _wrap_sub(total, cpu.total_time)

    cpu.user_time = user
    cpu.nice_time = nice
    cpu.system_time = times.system
    cpu.system_all_time = system_all
    cpu.idle_all_time = idle_all
    cpu.idle_time = times.idle
    cpu.io_wait_time = times.iowait
    cpu.irq_time = times.irq
    cpu.soft_irq_time = times.softirq
    cpu.steal_time = times.steal
    cpu.guest_time = virt_all
    cpu.total_time = total

    if cpu.total_period == 0:
        return
    period = float(cpu.total_period)
    busy = (
        cpu.nice_period
        + cpu.user_period
        + cpu.system_all_period
        + cpu.steal_period
        + cpu.guest_period
    )
    cpu.percent = min(max(busy * 100.0 / period, 0.0), 100.0)


class PowerSource(enum.IntEnum):
    """Where CPU package power is read from."""

    K10TEMP = 0
    ZENPOWER = 1
    RAPL = 2
    AMDGPU = 3


@dataclass
class K10TempPower:
    """Power from k10temp core/SoC voltage and current inputs."""

    core_voltage_path: str
    core_current_path: str
    soc_voltage_path: str
    soc_current_path: str
    source: PowerSource = field(default=PowerSource.K10TEMP, init=False)

    def read(self) -> float | None:
        """Return watts, or None if an input cannot be read."""
        values = [
            _read_int(path)
            for path in (
                self.core_voltage_path,
                self.core_current_path,
                self.soc_voltage_path,
                self.soc_current_path,
            )
        ]
        if any(value is None for value in values):
            return None
        core_v, core_i, soc_v, soc_i = values
        return float(_trunc_div(core_v * core_i + soc_v * soc_i, 1_000_000))


@dataclass
class ZenPower:
    """Power from zenpower core and SoC power inputs."""

    core_power_path: str
    soc_power_path: str
    source: PowerSource = field(default=PowerSource.ZENPOWER, init=False)

    def read(self) -> float | None:
        """Return watts, or None if an input cannot be read."""
        core = _read_int(self.core_power_path)
        soc = _read_int(self.soc_power_path)
        if core is None or soc is None:
            return None
        return float(_trunc_div(core + soc, 1_000_000))


class RaplPower:
    """Power derived from the RAPL energy counter between two reads."""

    source = PowerSource.RAPL

    def __init__(
        self, energy_counter_path: str, clock: Callable[[], int] = time.monotonic_ns
    ) -> None:
        self.energy_counter_path = energy_counter_path
        self._clock = clock
        self.last_counter_value = 0
        self.last_counter_time = clock()

    def read(self) -> float | None:
        """Return watts since the last read (0.0 on the first), or None on error."""
        value = _read_int(self.energy_counter_path)
        if value is None:
            return None
        now = self._clock()
        diff_micro = (now - self.last_counter_time) // 1000
        power = 0.0
        if 0 < self.last_counter_value < value and diff_micro > 0:
            power = float((value - self.last_counter_value) // diff_micro)
        self.last_counter_value = value
        self.last_counter_time = now
        return power


@dataclass
class AmdgpuPower:
    """CPU power reported by the APU's GPU metrics."""

    apu_cpu_power: float = 0.0
    source: PowerSource = field(default=PowerSource.AMDGPU, init=False)

    def read(self) -> float | None:
        return self.apu_cpu_power


PowerReader = K10TempPower | ZenPower | RaplPower | AmdgpuPower


def _find_input(path: str, prefix: str, name: str) -> str | None:
    """Find ``<prefix>N_input`` whose ``_label`` file reads ``name``."""
    for file in ls(path, prefix, LsFlags.FILES):
        if not file.endswith("_label"):
            continue
        if read_line(os.path.join(path, file)) != name:
            continue
        stem = file.split("_", 1)[0]
        return os.path.join(path, stem + "_input")
    return None


def _find_fallback_temp_input(path: str) -> str | None:
    for file in sorted(ls(path, "temp", LsFlags.FILES)):
        if file.endswith("_input"):
            found = os.path.join(path, file)
            log.debug("fallback cpu temp input: %s", found)
            return found
    return None


def _init_k10temp(path: str) -> K10TempPower | None:
    inputs = [
        _find_input(path, "in", "Vcore"),
        _find_input(path, "curr", "Icore"),
        _find_input(path, "in", "Vsoc"),
        _find_input(path, "curr", "Isoc"),
    ]
    if any(found is None for found in inputs):
        return None
    for found in inputs:
        log.debug("hwmon: using input: %s", found)
    return K10TempPower(*inputs)


def _init_zenpower(path: str) -> ZenPower | None:
    core = _find_input(path, "power", "SVI2_P_Core")
    soc = _find_input(path, "power", "SVI2_P_SoC")
    if core is None or soc is None:
        return None
    log.debug("hwmon: using input: %s", core)
    log.debug("hwmon: using input: %s", soc)
    return ZenPower(core, soc)


def _init_rapl(path: str) -> RaplPower | None:
    counter = os.path.join(path, "energy_uj")
    if not file_exists(counter):
        return None
    return RaplPower(counter)


class CpuStats:
    """Collects per-core and total CPU statistics."""

    def __init__(self, proc_dir: str = "/proc", sys_dir: str = "/sys") -> None:
        self.proc_dir = proc_dir
        self.sys_dir = sys_dir
        self.cpu_type = "CPU"
        self.cpu_data: list[CPUData] = []
        self.cpu_data_total = CPUData()
        self.cpu_period = 0.0
        self.boottime = 0
        self.updated = False
        self._inited = False
        self._temp_path: str | None = None
        self._power: PowerReader | None = None

    @property
    def stat_path(self) -> str:
        return os.path.join(self.proc_dir, "stat")

    @property
    def power_source(self) -> PowerReader | None:
        return self._power

    @property
    def temp_input(self) -> str | None:
        return self._temp_path

    def _read_stat_lines(self) -> list[str] | None:
        try:
            with open(self.stat_path, encoding="utf-8", errors="replace") as handle:
                return handle.read().splitlines()
        except OSError:
            log.error("Failed to open %s", self.stat_path)
            return None

    def init(self) -> bool:
        """Discover the CPUs listed in /proc/stat and take a first reading."""
        if self._inited:
            return True
        self.cpu_data = []
        lines = self._read_stat_lines()
        if lines is None:
            return False

        first = True
        for line in lines:
            if line.startswith("cpu"):
                if first:
                    first = False
                    continue
                match = _CORE_ID_RE.match(line)
                cpu_id = int(match.group(1)) if match else 0
                self.cpu_data.append(CPUData(total_time=1, total_period=1, cpu_id=cpu_id))
            elif line.startswith("btime "):
                match = _BTIME_RE.match(line)
                if match:
                    self.boottime = int(match.group(1))
                break
        else:
            log.debug("Failed to read all of %s", self.stat_path)
            return False

        self._inited = True
        return self.update_cpu_data()

    def reinit(self) -> bool:
        self._inited = False
        return self.init()

    def update_cpu_data(self) -> bool:
        """Read /proc/stat again and update load figures."""
        if not self._inited:
            return False
        lines = self._read_stat_lines()
        if lines is None:
            return False

        got_total = False
        cpu_count = 0
        for line in lines:
            total = None if got_total else _TOTAL_RE.match(line)
            if total:
                got_total = True
                times = CpuTimes(*(int(v) for v in total.groups()))
                calculate_cpu_data(self.cpu_data_total, times)
                continue
            core = _CORE_RE.match(line)
            if not core:
                break
            if not got_total:
                log.debug("Failed to parse 'cpu' line:%s", line)
                return False
            cpu_id = int(core.group(1))
            if cpu_count + 1 > len(self.cpu_data) or self.cpu_data[cpu_count].cpu_id != cpu_id:
                log.debug("Cpu id '%d' is out of bounds or wrong index, reiniting", cpu_id)
                return self.reinit()
            times = CpuTimes(*(int(v) for v in core.groups()[1:]))
            calculate_cpu_data(self.cpu_data[cpu_count], times)
            cpu_count += 1

        del self.cpu_data[cpu_count:]
        if self.cpu_data:
            self.cpu_period = self.cpu_data[0].total_period / len(self.cpu_data)
        self.updated = True
        return got_total

    def update_core_mhz(self) -> bool:
        """Read each core's current frequency; the total holds the highest."""
        for cpu in self.cpu_data:
            path = os.path.join(
                self.sys_dir,
                "devices",
                "system",
                "cpu",
                f"cpu{cpu.cpu_id}",
                "cpufreq",
                "scaling_cur_freq",
            )
            try:
                with open(path, encoding="utf-8", errors="replace") as handle:
                    text = handle.read()
            except OSError:
                continue
            match = _INT_RE.match(text)
            khz = int(match.group(1)) if match else 0
            cpu.mhz = _trunc_div(khz, 1000)

        self.cpu_data_total.cpu_mhz = max((cpu.mhz for cpu in self.cpu_data), default=0)
        self.cpu_data_total.cpu_mhz = max(self.cpu_data_total.cpu_mhz, 0)
        return True

    def update_cpu_temp(self, apu_cpu_temp: int = 0) -> bool:
        """Update the package temperature in degrees Celsius."""
        if self.cpu_type == "APU":
            self.cpu_data_total.temp = apu_cpu_temp
            return True
        if self._temp_path is None:
            return False
        value = _read_int(self._temp_path)
        self.cpu_data_total.temp = _trunc_div(value or 0, 1000)
        return value is not None

    def _hwmon_sensors(self) -> list[tuple[str, str]]:
        hwmon = os.path.join(self.sys_dir, "class", "hwmon")
        sensors = []
        for entry in ls(hwmon):
            path = os.path.join(hwmon, entry)
            name = read_line(os.path.join(path, "name"))
            log.debug("hwmon: sensor name: %s", name)
            sensors.append((path, name))
        return sensors

    def get_cpu_file(self) -> bool:
        """Locate the hwmon input for the CPU temperature."""
        if self._temp_path is not None:
            return True

        labels = {
            "coretemp": "Package id 0",
            "zenpower": "Tdie",
            "k10temp": "Tdie",
            "atk0110": "CPU Temperature",
        }
        sensor_path = ""
        found: str | None = None
        for path, name in self._hwmon_sensors():
            if name in labels:
                sensor_path = path
                found = _find_input(path, "temp", labels[name])
                break

        if sensor_path and not (found and file_exists(found)):
            found = _find_fallback_temp_input(sensor_path)
        if not sensor_path or found is None:
            log.error("Could not find cpu temp sensor location")
            return False
        log.debug("hwmon: using input: %s", found)
        self._temp_path = found
        return True

    def init_cpu_power_data(self) -> bool:
        """Pick a source for CPU power readings."""
        if self._power is not None:
            return True

        power: PowerReader | None = None
        intel = False
        for path, name in self._hwmon_sensors():
            if name == "k10temp":
                power = _init_k10temp(path)
                break
            if name == "zenpower":
                power = _init_zenpower(path)
                break
            if name == "coretemp":
                intel = True

        if power is None and intel:
            powercap = os.path.join(self.sys_dir, "class", "powercap")
            for entry in ls(powercap):
                path = os.path.join(powercap, entry)
                name = read_line(os.path.join(path, "name"))
                log.debug("powercap: name: %s", name)
                if name == "package-0":
                    power = _init_rapl(path)
                    break
        if power is None and not intel:
            power = AmdgpuPower()

        if power is None:
            log.error("Failed to initialize CPU power data")
            return False
        self._power = power
        return True

    def update_cpu_power(self, apu_cpu_power: float = 0.0) -> bool:
        """Read CPU power into the total; ``apu_cpu_power`` feeds the APU source."""
        if self._power is None:
            return False
        if isinstance(self._power, AmdgpuPower):
            self._power.apu_cpu_power = apu_cpu_power
        power = self._power.read()
        if power is None:
            return False
        self.cpu_data_total.power = power
        return True