[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netsweep"
version = "0.1.0"
description = "Building blocks for single-packet network surveys: result records, filters, probe payloads for ICMP and BACnet, and CSV and JSON output."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "network",
    "scanning",
    "survey",
    "icmp",
    "bacnet",
    "csv",
    "json",
    "filter",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["netsweep"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
