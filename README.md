# hudmon

`hudmon` reads the system statistics that a performance overlay shows. It works from Linux
`/proc` and `/sys` files and returns plain Python objects: dataclasses, numbers and strings.
It has no dependencies beyond the standard library.

## Installation

```
pip install .
```

With the test requirements:

```
pip install .[test]
pytest
```

## Modules

| Module | What it does |
| --- | --- |
| `hudmon.file_utils` | `read_line`, `ls` with `LsFlags`, `file_exists`, `dir_exists`, `read_symlink`, `get_basename`, `get_exe_path`, `get_wine_exe_name`, and the `get_home_dir` / `get_data_dir` / `get_config_dir` lookups. |
| `hudmon.cpu` | `CpuStats`: per-core and total load from `/proc/stat`, core clocks from cpufreq, package temperature from hwmon, and package power from k10temp, zenpower, RAPL or an APU (`K10TempPower`, `ZenPower`, `RaplPower`, `AmdgpuPower`). `calculate_cpu_data` turns two sets of `CpuTimes` into a load percentage. |
| `hudmon.amdgpu` | `check_metrics` and `read_instant_metrics` decode the binary `gpu_metrics` table of desktop GPUs (format 1) and APUs (format 2); `aggregate` combines samples; `AmdgpuPoller` samples in a background thread. |
| `hudmon.battery` | `BatteryStats`: combined charge percentage, discharge power in watts and hours remaining. |
| `hudmon.gamepad` | `scan_gamepads` finds controller power supplies; `gamepad_info` returns `Gamepad` records with names, battery level and charging state. |
| `hudmon.media` | The `Metadata` record for MPRIS player data, `assign_metadata_value`, `parse_song_data`, `format_signal`, and a thread-safe `MetadataStore`. |
| `hudmon.protocol` | Packs and unpacks the binary `FrameMessage` and `ControlMessage` records, with `ControlAction` for keep / set / clear / toggle. |

Most readers take their root directory as an argument, so they can be pointed at a copy of
`/proc` or `/sys`.

## Examples

CPU load, clocks and temperature:

```python
from hudmon.cpu import CpuStats

stats = CpuStats()               # or CpuStats(proc_dir=..., sys_dir=...)
if stats.init():
    stats.update_cpu_data()      # call again later to get a load over the interval
    stats.update_core_mhz()
    print(stats.cpu_data_total.percent, stats.cpu_data_total.cpu_mhz)
    print([core.percent for core in stats.cpu_data])

if stats.get_cpu_file():
    stats.update_cpu_temp()
    print(stats.cpu_data_total.temp)

if stats.init_cpu_power_data() and stats.update_cpu_power():
    print(stats.cpu_data_total.power)
```

AMD GPU metrics:

```python
import os
from hudmon.amdgpu import AmdgpuPoller, check_metrics, read_instant_metrics

path = "/sys/class/drm/card0/device/gpu_metrics"
if check_metrics(path):
    print(read_instant_metrics(path, cpu_count=os.cpu_count() or 0))

    poller = AmdgpuPoller(path, cpu_count=os.cpu_count() or 0)
    poller.start()               # first reading at once, then 500 ms aggregates
    print(poller.snapshot().gpu_load_percent)
    poller.stop()
```

Batteries and gamepads:

```python
from hudmon.battery import BatteryStats
from hudmon.gamepad import gamepad_info, scan_gamepads

battery = BatteryStats()
battery.update()
print(battery.current_percent, battery.current_watt, battery.remaining_time)

for pad in gamepad_info(scan_gamepads()):
    print(pad.name, pad.battery, pad.battery_percent, pad.is_charging)
```

Media metadata:

```python
from hudmon.media import Metadata, MetadataStore, parse_song_data

meta = Metadata()
parse_song_data([("xesam:title", "Song"), ("xesam:artist", ["A", "B"])], meta)
print(meta.title, meta.artists)      # Song A, B

store = MetadataStore()
store.on_new_player(meta)
print(store.snapshot().title)
```

Overlay messages:

```python
from hudmon.protocol import ControlAction, ControlMessage, FrameMessage

data = ControlMessage(no_display=ControlAction.TOGGLE).pack()
message = ControlMessage.unpack(data)
print(message.no_display.apply(False))   # True

frame = FrameMessage.unpack(FrameMessage(pid=42, visible_frametime_ns=16_000_000).pack())
print(frame.pid, frame.visible_frametime_ns)
```

`FrameMessage.unpack` accepts shorter messages from older senders and leaves the missing
fields as `None`; both `unpack` methods raise `ValueError` for a message that is too short
for its header or has an unsupported version.

## What it does not do

- It draws nothing: there is no overlay window and no rendering.
- It has no command-line program.
- It does not read configuration files and keeps no list of programs to leave alone.
- It does not send or receive on a message queue or a control socket; `hudmon.protocol`
  only builds and decodes the bytes.
- It does not connect to D-Bus. `hudmon.media` holds and merges metadata that the caller
  obtains from a media player.