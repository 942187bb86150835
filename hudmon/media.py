"""Media player metadata as reported by MPRIS players."""

from __future__ import annotations

import dataclasses
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Metadata:
    """What is known about the current track and playback state."""

    title: str = ""
    artists: str = ""
    album: str = ""
    art_url: str = ""
    playing: bool = False
    valid: bool = False
    got_song_data: bool = False
    got_playback_data: bool = False


def assign_metadata_value(meta: Metadata, key: str, value: str) -> None:
    """Store one MPRIS property or metadata entry in ``meta``."""
    if key == "PlaybackStatus":
        meta.playing = value == "Playing"
        meta.got_playback_data = True
    elif key == "xesam:title":
        meta.title = value
        meta.got_song_data = True
        meta.valid = True
    elif key == "xesam:artist":
        meta.artists = value
        meta.got_song_data = True
        meta.valid = True
    elif key == "xesam:album":
        meta.album = value
        meta.got_song_data = True
        meta.valid = True
    elif key == "mpris:artUrl":
        meta.art_url = value
        meta.got_song_data = True
    elif key == "xesam:url":
        # With no other metadata, this still clears stale track data.
        meta.got_song_data = True


def format_signal(interface: str, member: str) -> str:
    """Return a bus match rule for a signal."""
    return f"type='signal',interface='{interface}',member='{member}'"


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return ", ".join(_stringify(item) for item in value)
    return ""


def parse_song_data(entries: Iterable[tuple[str, Any]], meta: Metadata) -> None:
    """Apply a metadata map; list values are joined with ", "."""
    for key, value in entries:
        assign_metadata_value(meta, key, _stringify(value))


class MetadataStore:
    """The shared metadata of the active player, with its scrolling-ticker state."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.meta = Metadata()
        self.ticker: dict[str, Any] = {}

    def snapshot(self) -> Metadata:
        with self._lock:
            return dataclasses.replace(self.meta)

    def on_no_player(self) -> None:
        """Forget everything: no player is active."""
        with self._lock:
            self.meta = Metadata()
            self.ticker = {}

    def on_new_player(self, meta: Metadata) -> None:
        """Take the metadata of a newly selected player."""
        with self._lock:
            self.meta = dataclasses.replace(meta)
            self.ticker = {}

    def on_player_update(self, meta: Metadata) -> None:
        """Merge an update from the active player."""
        with self._lock:
            if meta.got_song_data:
                current = self.meta
                if (
                    current.artists != meta.artists
                    or current.album != meta.album
                    or current.title != meta.title
                ):
                    self.ticker = {}
                self.meta = dataclasses.replace(meta, playing=True)
            if meta.got_playback_data:
                self.meta.playing = meta.playing


__all_fields__ = field  # keep dataclasses.field importable for subclasses