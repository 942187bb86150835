import pytest

from hudmon.battery import BatteryStats


def make_battery(root, name, **files):
    path = root / name
    path.mkdir()
    for key, value in files.items():
        (path / key).write_text(f"{value}\n")
    return path


def test_find_batteries_only_bat_entries(tmp_path):
    make_battery(tmp_path, "BAT0")
    make_battery(tmp_path, "BAT1")
    make_battery(tmp_path, "AC")
    stats = BatteryStats(str(tmp_path))
    assert stats.find_batteries() == 2
    assert stats.batt_check is True
    assert [p.rsplit("/", 1)[-1] for p in stats.batt_paths] == ["BAT0", "BAT1"]


def test_find_batteries_missing_root(tmp_path):
    stats = BatteryStats(str(tmp_path / "absent"))
    assert stats.find_batteries() == 0


def test_update_without_batteries_keeps_zeros(tmp_path):
    stats = BatteryStats(str(tmp_path))
    stats.update()
    assert stats.batt_count == 0
    assert (stats.current_watt, stats.current_percent, stats.remaining_time) == (0.0, 0.0, 0.0)


def test_percent_full_charge(tmp_path):
    make_battery(tmp_path, "BAT0", charge_now=4000000, charge_full=4000000)
    stats = BatteryStats(str(tmp_path))
    stats.find_batteries()
    assert stats.get_percent() == pytest.approx(100.0)


def test_percent_from_energy(tmp_path):
    make_battery(tmp_path, "BAT0", energy_now=2000000, energy_full=4000000)
    stats = BatteryStats(str(tmp_path))
    stats.find_batteries()
    assert stats.get_percent() == pytest.approx(50.0)


def test_percent_from_capacity(tmp_path):
    capacity = 40
    make_battery(tmp_path, "BAT0", capacity=capacity)
    stats = BatteryStats(str(tmp_path))
    stats.find_batteries()
    assert stats.get_percent() == pytest.approx(capacity)


def test_percent_without_readings_is_nan(tmp_path):
    make_battery(tmp_path, "BAT0")
    stats = BatteryStats(str(tmp_path))
    assert stats.find_batteries() == 1
    result = stats.get_percent()
    assert str(result) == "nan"


@pytest.mark.parametrize("status", ["Charging", "Unknown", "Full"])
def test_power_zero_when_not_discharging(tmp_path, status):
    make_battery(tmp_path, "BAT0", status=status, power_now=9000000)
    stats = BatteryStats(str(tmp_path))
    stats.find_batteries()
    assert stats.get_power() == 0
    assert stats.current_status == status
    assert stats.state == [status]


def test_power_from_power_now(tmp_path):
    make_battery(tmp_path, "BAT0", status="Discharging", power_now=1000000)
    stats = BatteryStats(str(tmp_path))
    stats.find_batteries()
    assert stats.get_power() == pytest.approx(1.0)


def test_power_from_current_and_voltage(tmp_path):
    make_battery(tmp_path, "BAT0", status="Discharging", current_now=2000000, voltage_now=1000000)
    stats = BatteryStats(str(tmp_path))
    stats.find_batteries()
    assert stats.get_power() == pytest.approx(2.0)


def test_time_remaining_from_current(tmp_path):
    current = 1500000
    hours = 3
    make_battery(tmp_path, "BAT0", current_now=current, charge_now=hours * current)
    stats = BatteryStats(str(tmp_path))
    stats.find_batteries()
    assert stats.get_time_remaining() == pytest.approx(hours)


def test_time_remaining_from_power(tmp_path):
    charge = 3000000
    make_battery(tmp_path, "BAT0", power_now=12000000, voltage_now=12000000, charge_now=charge)
    stats = BatteryStats(str(tmp_path))
    stats.find_batteries()
    assert stats.get_time_remaining() == pytest.approx(charge)


def test_current_history_is_bounded(tmp_path):
    make_battery(tmp_path, "BAT0", current_now=1000000, charge_now=1000000)
    stats = BatteryStats(str(tmp_path))
    stats.find_batteries()
    for _ in range(30):
        stats.get_time_remaining()
    assert len(stats.current_now_history) == 25


def test_update_fills_values(tmp_path):
    make_battery(tmp_path, "BAT0", status="Discharging", capacity=80, power_now=1000000)
    stats = BatteryStats(str(tmp_path))
    stats.update()
    assert stats.batt_count == 1
    assert stats.current_percent == pytest.approx(80)
    assert stats.current_watt > 0