"""AMD GPU metrics read from the binary ``gpu_metrics`` sysfs table."""

from __future__ import annotations

import dataclasses
import logging
import struct
import threading
from dataclasses import dataclass

log = logging.getLogger(__name__)

METRICS_UPDATE_PERIOD_MS = 500
METRICS_POLLING_PERIOD_MS = 5
METRICS_SAMPLE_COUNT = METRICS_UPDATE_PERIOD_MS // METRICS_POLLING_PERIOD_MS

HEADER = struct.Struct("<HBB")
V1_0_SIZE = 80
V1_1_SIZE = 96
V1_2_SIZE = 104
V1_3_SIZE = 120
V2_2_SIZE = 128
_BUFFER_SIZE = max(V1_3_SIZE, V2_2_SIZE)
_CORE_TEMP_COUNT = 8

# Byte offsets of the fields used from each table layout.
_V1_TEMPERATURE_EDGE = 4
_V1_AVERAGE_GFX_ACTIVITY = 16
_V1_AVERAGE_SOCKET_POWER = 22
_V1_AVERAGE_GFXCLK_FREQUENCY = 40
_V1_CURRENT_UCLK = 58
_V1_INDEP_THROTTLE_STATUS = 112

_V2_TEMPERATURE_GFX = 4
_V2_TEMPERATURE_SOC = 6
_V2_TEMPERATURE_CORE = 8
_V2_AVERAGE_GFX_ACTIVITY = 28
_V2_AVERAGE_CPU_POWER = 42
_V2_AVERAGE_GFX_POWER = 46
_V2_CURRENT_GFXCLK = 76
_V2_CURRENT_UCLK = 80
_V2_INDEP_THROTTLE_STATUS = 120


@dataclass(frozen=True)
class MetricsHeader:
    """The common header at the start of every metrics table."""

    structure_size: int
    format_revision: int
    content_revision: int

    @classmethod
    def unpack(cls, data: bytes) -> MetricsHeader:
        if len(data) < HEADER.size:
            raise ValueError(f"metrics header too short: {len(data)} bytes")
        return cls(*HEADER.unpack_from(data))


@dataclass
class AmdgpuMetrics:
    """Metrics of one reading, or aggregated over a sampling period."""

    gpu_load_percent: int = 0
    average_gfx_power_w: float = 0.0
    average_cpu_power_w: float = 0.0
    current_gfxclk_mhz: int = 0
    current_uclk_mhz: int = 0
    soc_temp_c: int = 0
    gpu_temp_c: int = 0
    apu_cpu_temp_c: int = 0
    is_power_throttled: bool = False
    is_current_throttled: bool = False
    is_temp_throttled: bool = False
    is_other_throttled: bool = False
    device_type: str = ""


def check_metrics(path: str) -> bool:
    """Return whether ``path`` holds a metrics table of a supported version."""
    try:
        with open(path, "rb") as handle:
            data = handle.read(HEADER.size)
    except OSError:
        return False
    if len(data) < HEADER.size:
        log.debug("Failed to read the metrics header of '%s'", path)
        return False

    header = MetricsHeader.unpack(data)
    if header.structure_size == V1_0_SIZE:
        # v1_0 is not naturally aligned
        return False
    if header.structure_size in (V1_1_SIZE, V1_2_SIZE, V1_3_SIZE, V2_2_SIZE) and (
        header.format_revision in (1, 2)
    ):
        return True
    log.warning(
        "Unsupported gpu_metrics version: %d.%d",
        header.format_revision,
        header.content_revision,
    )
    return False


def _field(buf: bytes, offset: int, fmt: str) -> int:
    return struct.unpack_from("<" + fmt, buf, offset)[0]


def read_instant_metrics(path: str, cpu_count: int = 0) -> AmdgpuMetrics | None:
    """Read one set of metrics; ``cpu_count`` is the number of logical CPUs.

    Returns None if the file cannot be read.
    """
    try:
        with open(path, "rb") as handle:
            data = handle.read(_BUFFER_SIZE)
    except OSError:
        return None
    buf = data.ljust(_BUFFER_SIZE, b"\0")
    header = MetricsHeader.unpack(buf)

    metrics = AmdgpuMetrics()
    throttle = 0
    if header.format_revision == 1:
        # Desktop GPUs
        metrics.device_type = "GPU"
        metrics.gpu_load_percent = _field(buf, _V1_AVERAGE_GFX_ACTIVITY, "H")
        metrics.average_gfx_power_w = float(_field(buf, _V1_AVERAGE_SOCKET_POWER, "H"))
        metrics.current_gfxclk_mhz = _field(buf, _V1_AVERAGE_GFXCLK_FREQUENCY, "H")
        metrics.current_uclk_mhz = _field(buf, _V1_CURRENT_UCLK, "H")
        metrics.gpu_temp_c = _field(buf, _V1_TEMPERATURE_EDGE, "H")
        throttle = _field(buf, _V1_INDEP_THROTTLE_STATUS, "Q")
    elif header.format_revision == 2:
        # APUs
        metrics.device_type = "APU"
        metrics.gpu_load_percent = _field(buf, _V2_AVERAGE_GFX_ACTIVITY, "H")
        metrics.average_gfx_power_w = _field(buf, _V2_AVERAGE_GFX_POWER, "H") / 1000.0
        metrics.average_cpu_power_w = _field(buf, _V2_AVERAGE_CPU_POWER, "H") / 1000.0
        metrics.current_gfxclk_mhz = _field(buf, _V2_CURRENT_GFXCLK, "H")
        metrics.current_uclk_mhz = _field(buf, _V2_CURRENT_UCLK, "H")
        metrics.soc_temp_c = _field(buf, _V2_TEMPERATURE_SOC, "H") // 100
        metrics.gpu_temp_c = _field(buf, _V2_TEMPERATURE_GFX, "H") // 100
        core_temps = struct.unpack_from(f"<{_CORE_TEMP_COUNT}H", buf, _V2_TEMPERATURE_CORE)
        physical = min(max(cpu_count, 0) // 2, _CORE_TEMP_COUNT)
        metrics.apu_cpu_temp_c = max(core_temps[:physical], default=0) // 100
        throttle = _field(buf, _V2_INDEP_THROTTLE_STATUS, "Q")

    metrics.is_power_throttled = (throttle & 0xFF) != 0
    metrics.is_current_throttled = ((throttle >> 16) & 0xFF) != 0
    metrics.is_temp_throttled = ((throttle >> 32) & 0xFFFF) != 0
    metrics.is_other_throttled = ((throttle >> 56) & 0xFF) != 0
    return metrics


def aggregate(samples: list[AmdgpuMetrics]) -> AmdgpuMetrics:
    """Combine samples: loads, powers and clocks averaged, temperatures and
    throttling flags taken at their maximum."""
    if not samples:
        raise ValueError("no samples to aggregate")
    count = len(samples)
    return AmdgpuMetrics(
        gpu_load_percent=sum(s.gpu_load_percent for s in samples) // count,
        average_gfx_power_w=sum(s.average_gfx_power_w for s in samples) / count,
        average_cpu_power_w=sum(s.average_cpu_power_w for s in samples) / count,
        current_gfxclk_mhz=sum(s.current_gfxclk_mhz for s in samples) // count,
        current_uclk_mhz=sum(s.current_uclk_mhz for s in samples) // count,
        soc_temp_c=max(s.soc_temp_c for s in samples),
        gpu_temp_c=max(s.gpu_temp_c for s in samples),
        apu_cpu_temp_c=max(s.apu_cpu_temp_c for s in samples),
        is_power_throttled=any(s.is_power_throttled for s in samples),
        is_current_throttled=any(s.is_current_throttled for s in samples),
        is_temp_throttled=any(s.is_temp_throttled for s in samples),
        is_other_throttled=any(s.is_other_throttled for s in samples),
        device_type=samples[-1].device_type,
    )


class AmdgpuPoller:
    """Samples the metrics file in the background and keeps period aggregates."""

    sample_count = METRICS_SAMPLE_COUNT
    poll_interval = METRICS_POLLING_PERIOD_MS / 1000.0

    def __init__(self, path: str, cpu_count: int = 0) -> None:
        self.path = path
        self.cpu_count = cpu_count
        self._lock = threading.Lock()
        self._current = AmdgpuMetrics()
        self._last_sample = AmdgpuMetrics()
        # some GPUs report load as centipercent
        self._load_needs_dividing = False
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def _sample(self) -> AmdgpuMetrics:
        sample = read_instant_metrics(self.path, self.cpu_count)
        if sample is None:
            return dataclasses.replace(self._last_sample)
        if self._load_needs_dividing or sample.gpu_load_percent > 100:
            self._load_needs_dividing = True
            sample.gpu_load_percent //= 100
        self._last_sample = sample
        return sample

    def poll_once(self) -> AmdgpuMetrics:
        """Take one period of samples, store the aggregate and return it."""
        samples = []
        for _ in range(self.sample_count):
            samples.append(self._sample())
            self._stop.wait(self.poll_interval)
        result = aggregate(samples)
        with self._lock:
            self._current = result
        return dataclasses.replace(result)

    def _run(self) -> None:
        while not self._stop.is_set():
            self.poll_once()

    def start(self) -> None:
        """Take a first reading at once, then keep polling in a thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        first = self._sample()
        with self._lock:
            self._current = first
        self._thread = threading.Thread(target=self._run, name="amdgpu-metrics", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the polling thread and wait for it."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def snapshot(self) -> AmdgpuMetrics:
        """Return a copy of the latest aggregated metrics."""
        with self._lock:
            return dataclasses.replace(self._current)