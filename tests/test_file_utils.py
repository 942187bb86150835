import os

import pytest

from hudmon.file_utils import (
    LsFlags,
    _wine_exe_name,
    dir_exists,
    file_exists,
    get_basename,
    get_config_dir,
    get_data_dir,
    get_exe_path,
    get_home_dir,
    get_wine_exe_name,
    ls,
    read_line,
    read_symlink,
)


def test_read_line_returns_first_line(tmp_path):
    path = tmp_path / "f"
    path.write_text("first\nsecond\n")
    assert read_line(str(path)) == "first"


def test_read_line_missing_file(tmp_path):
    assert read_line(str(tmp_path / "nope")) == ""


@pytest.mark.parametrize(
    "path, expected",
    [
        ("a/b/c", "c"),
        ("dir/", "dir/"),
        ("plain", "plain"),
        ("C:\\games\\x.exe", "x.exe"),
    ],
)
def test_get_basename(path, expected):
    assert get_basename(path) == expected


@pytest.fixture
def tree(tmp_path):
    (tmp_path / "temp1").mkdir()
    (tmp_path / "temp2_input").write_text("1")
    (tmp_path / "other").mkdir()
    (tmp_path / "templink").symlink_to(tmp_path / "temp1")
    (tmp_path / "tempbroken").symlink_to(tmp_path / "missing")
    return tmp_path


def test_ls_dirs_with_prefix(tree):
    assert sorted(ls(str(tree), "temp", LsFlags.DIRS)) == ["temp1", "templink"]


def test_ls_files_with_prefix(tree):
    assert ls(str(tree), "temp", LsFlags.FILES) == ["temp2_input"]


def test_ls_all_kinds_without_prefix(tree):
    names = sorted(ls(str(tree), None, LsFlags.DIRS | LsFlags.FILES))
    assert names == ["other", "temp1", "temp2_input", "templink"]


def test_ls_missing_dir(tmp_path):
    assert ls(str(tmp_path / "missing")) == []


def test_file_and_dir_exists(tree):
    assert file_exists(str(tree / "temp2_input"))
    assert not file_exists(str(tree / "temp1"))
    assert dir_exists(str(tree / "temp1"))
    assert not dir_exists(str(tree / "temp2_input"))
    assert not file_exists(str(tree / "missing"))


def test_read_symlink(tree):
    assert read_symlink(str(tree / "templink")) == str(tree / "temp1")
    assert read_symlink(str(tree / "temp2_input")) == ""


def test_get_exe_path_matches_proc():
    assert get_exe_path() == os.readlink("/proc/self/exe")


def test_not_running_under_wine():
    assert get_wine_exe_name() == ""


def test_wine_name_from_comm():
    exe = "/usr/bin/wine64-preloader"
    assert _wine_exe_name(exe, "Game.exe", "", False) == "Game"
    assert _wine_exe_name(exe, "Game.exe", "", True) == "Game.exe"


def test_wine_name_from_cmdline_path():
    exe = "/usr/bin/wine-preloader"
    cmdline = "C:\\games\\Foo.exe\0-arg\0"
    assert _wine_exe_name(exe, "wineserver", cmdline, False) == "Foo"
    assert _wine_exe_name(exe, "wineserver", cmdline, True) == "Foo.exe"


def test_wine_name_from_bare_cmdline_exe():
    exe = "/usr/bin/wine-preloader"
    assert _wine_exe_name(exe, "x", "Bar.EXE\0", False) == "Bar"


def test_wine_name_needs_preloader():
    assert _wine_exe_name("/usr/bin/python3", "Game.exe", "", False) == ""


def test_dirs_from_home(monkeypatch):
    monkeypatch.setenv("HOME", "/home/user")
    monkeypatch.delenv("XDG_DATA_HOME", raising=False)
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    assert get_home_dir() == "/home/user"
    assert get_data_dir() == "/home/user/.local/share"
    assert get_config_dir() == "/home/user/.config"


def test_dirs_from_xdg(monkeypatch):
    monkeypatch.setenv("XDG_DATA_HOME", "/d")
    monkeypatch.setenv("XDG_CONFIG_HOME", "/c")
    assert get_data_dir() == "/d"
    assert get_config_dir() == "/c"


def test_dirs_without_home(monkeypatch):
    monkeypatch.delenv("HOME", raising=False)
    monkeypatch.delenv("XDG_DATA_HOME", raising=False)
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    assert get_data_dir() == ""
    assert get_config_dir() == ""