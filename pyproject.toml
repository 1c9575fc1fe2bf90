[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "moshutil"
version = "0.1.0"
description = "POSIX terminal-session utilities: locale checks, pty forking, signal-aware select, monotonic timestamps and complete writes"
requires-python = ">=3.10"
dependencies = []
keywords = ["pty", "terminal", "locale", "select", "signals", "timestamp", "termios"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
    "Topic :: Terminals",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["moshutil"]

[tool.pytest.ini_options]
addopts = "-ra"
