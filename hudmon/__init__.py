"""System telemetry readers: CPU, AMD GPU, batteries, gamepads, media metadata and overlay messages."""

__version__ = "0.1.0"