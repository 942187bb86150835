[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hudmon"
version = "0.1.0"
description = "System telemetry readers for a performance overlay: CPU, AMD GPU metrics, batteries, gamepads, media metadata and binary overlay messages."
requires-python = ">=3.10"
dependencies = []
keywords = ["monitoring", "overlay", "cpu", "gpu", "amdgpu", "battery", "gamepad", "sysfs", "procfs", "mpris"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["hudmon"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
