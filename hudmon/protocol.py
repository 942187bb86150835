"""Binary messages exchanged with the overlay over a message queue."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass

SUPPORTED_VERSION = 1

_HEADER = struct.Struct("=qI")

_FRAME_FIELDS = (
    ("pid", "I"),
    ("visible_frametime_ns", "Q"),
    ("fsr_upscale", "B"),
    ("fsr_sharpness", "B"),
    ("app_frametime_ns", "Q"),
    ("latency_ns", "Q"),
)
_FRAME = struct.Struct("=qI" + "".join(code for _, code in _FRAME_FIELDS))

_CONTROL = struct.Struct("=qIIBB64s")
SESSION_NAME_SIZE = 64


class ControlAction(enum.IntEnum):
    """What a control message asks to do with a boolean setting."""

    KEEP = 0
    SET_TRUE = 1
    SET_FALSE = 2
    TOGGLE = 3

    def apply(self, current: bool) -> bool:
        """Return the new value of a setting that is currently ``current``."""
        if self is ControlAction.SET_TRUE:
            return True
        if self is ControlAction.SET_FALSE:
            return False
        if self is ControlAction.TOGGLE:
            return not current
        return current


@dataclass
class FrameMessage:
    """Per-frame timing report; fields missing from an older sender are None."""

    msg_type: int = 1
    version: int = SUPPORTED_VERSION
    pid: int | None = 0
    visible_frametime_ns: int | None = 0
    fsr_upscale: int | None = 0
    fsr_sharpness: int | None = 0
    app_frametime_ns: int | None = 0
    latency_ns: int | None = 0

    def pack(self) -> bytes:
        values = [getattr(self, name) or 0 for name, _ in _FRAME_FIELDS]
        return _FRAME.pack(self.msg_type, self.version, *values)

    @classmethod
    def unpack(cls, data: bytes) -> FrameMessage:
        if len(data) < _HEADER.size:
            raise ValueError(f"frame message too short: {len(data)} bytes")
        msg_type, version = _HEADER.unpack_from(data)
        if version != SUPPORTED_VERSION:
            raise ValueError(f"unsupported message version: {version}")
        values: dict[str, int | None] = {}
        offset = _HEADER.size
        for name, code in _FRAME_FIELDS:
            fmt = "=" + code
            size = struct.calcsize(fmt)
            values[name] = (
                struct.unpack_from(fmt, data, offset)[0] if offset + size <= len(data) else None
            )
            offset += size
        return cls(msg_type=msg_type, version=version, **values)


@dataclass
class ControlMessage:
    """Request to change display or logging state."""

    msg_type: int = 2
    ctrl_msg_type: int = 1
    version: int = SUPPORTED_VERSION
    no_display: ControlAction = ControlAction.KEEP
    log_session: ControlAction = ControlAction.KEEP
    log_session_name: str = ""

    def pack(self) -> bytes:
        name = self.log_session_name.encode("utf-8")
        if len(name) >= SESSION_NAME_SIZE:
            raise ValueError("log session name is too long")
        return _CONTROL.pack(
            self.msg_type,
            self.ctrl_msg_type,
            self.version,
            int(self.no_display),
            int(self.log_session),
            name,
        )

    @classmethod
    def unpack(cls, data: bytes) -> ControlMessage:
        if len(data) < _CONTROL.size:
            raise ValueError(f"control message too short: {len(data)} bytes")
        msg_type, ctrl_type, version, no_display, log_session, raw_name = _CONTROL.unpack_from(
            data
        )
        if version != SUPPORTED_VERSION:
            raise ValueError(f"unsupported message version: {version}")
        name = raw_name.split(b"\0", 1)[0].decode("utf-8", errors="replace")
        return cls(
            msg_type=msg_type,
            ctrl_msg_type=ctrl_type,
            version=version,
            no_display=ControlAction(no_display),
            log_session=ControlAction(log_session),
            log_session_name=name,
        )