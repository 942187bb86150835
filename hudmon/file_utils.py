"""Small filesystem and process helpers."""

from __future__ import annotations

import enum
import logging
import os
import stat

log = logging.getLogger(__name__)


class LsFlags(enum.IntFlag):
    """Which kinds of directory entries :func:`ls` returns."""

    DIRS = 0x01
    FILES = 0x02


def read_line(filename: str) -> str:
    """Return the first line of a file without its newline, or "" if unreadable."""
    try:
        with open(filename, encoding="utf-8", errors="replace") as handle:
            return handle.readline().rstrip("\n")
    except OSError:
        return ""


def get_basename(path: str) -> str:
    """Return the part after the last path separator, or the path itself."""
    pos = max(path.rfind("/"), path.rfind("\\"))
    if pos == -1:
        return path
    if pos < len(path) - 1:
        return path[pos + 1:]
    return path


def ls(root: str, prefix: str | None = None, flags: LsFlags = LsFlags.DIRS) -> list[str]:
    """List entry names in ``root`` matching ``prefix`` and the kinds in ``flags``.

    Symbolic links are followed to decide their kind; broken links are skipped.
    """
    names: list[str] = []
    try:
        entries = os.scandir(root)
    except OSError as exc:
        log.error("Error opening directory '%s': %s", root, exc.strerror)
        return names

    with entries:
        for entry in entries:
            if prefix is not None and not entry.name.startswith(prefix):
                continue
            try:
                if entry.is_symlink():
                    mode = os.stat(entry.path).st_mode
                    is_dir = stat.S_ISDIR(mode)
                    is_file = stat.S_ISREG(mode)
                else:
                    is_dir = entry.is_dir(follow_symlinks=False)
                    is_file = entry.is_file(follow_symlinks=False)
            except OSError:
                continue
            if (flags & LsFlags.DIRS and is_dir) or (flags & LsFlags.FILES and is_file):
                names.append(entry.name)
    return names


def file_exists(path: str) -> bool:
    """True if ``path`` exists and is not a directory."""
    try:
        return not stat.S_ISDIR(os.stat(path).st_mode)
    except OSError:
        return False


def dir_exists(path: str) -> bool:
    """True if ``path`` exists and is a directory."""
    try:
        return stat.S_ISDIR(os.stat(path).st_mode)
    except OSError:
        return False


def read_symlink(link: str) -> str:
    """Return the target of a symbolic link, or "" if it cannot be read."""
    try:
        return os.readlink(link)
    except OSError:
        return ""


def get_exe_path() -> str:
    """Return the path of the running executable."""
    return read_symlink("/proc/self/exe")


def _read_cmdline() -> str:
    try:
        with open("/proc/self/cmdline", "rb") as handle:
            return handle.read().decode("utf-8", errors="replace")
    except OSError:
        return ""


def _wine_exe_name(exe_path: str, comm: str, cmdline: str, keep_ext: bool) -> str:
    """Work out the Windows program name from process details."""
    if not (exe_path.endswith("wine-preloader") or exe_path.endswith("wine64-preloader")):
        return ""

    if comm.lower().endswith(".exe"):
        return comm if keep_ext else comm[: comm.rfind(".")]

    for arg in cmdline.split("\0"):
        sep = max(arg.rfind("/"), arg.rfind("\\"))
        if arg and sep != -1 and sep < len(arg) - 1:
            dot = -1 if keep_ext else arg.rfind(".")
            end = len(arg) if dot < sep else dot
            return arg[sep + 1:end]
        if arg.lower().endswith(".exe"):
            return arg if keep_ext else arg[: arg.rfind(".")]
    return ""


def get_wine_exe_name(keep_ext: bool = False) -> str:
    """Return the name of the Windows program run under wine, or ""."""
    exe_path = get_exe_path()
    if not (exe_path.endswith("wine-preloader") or exe_path.endswith("wine64-preloader")):
        return ""
    return _wine_exe_name(exe_path, read_line("/proc/self/comm"), _read_cmdline(), keep_ext)


def get_home_dir() -> str:
    """Return $HOME, or "" if it is not set."""
    return os.environ.get("HOME", "")


def get_data_dir() -> str:
    """Return the XDG data directory."""
    if "XDG_DATA_HOME" in os.environ:
        return os.environ["XDG_DATA_HOME"]
    home = get_home_dir()
    return home + "/.local/share" if home else home


def get_config_dir() -> str:
    """Return the XDG configuration directory."""
    if "XDG_CONFIG_HOME" in os.environ:
        return os.environ["XDG_CONFIG_HOME"]
    home = get_home_dir()
    return home + "/.config" if home else home