[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mpcli"
version = "0.34.0"
description = "A command line client for the Music Player Daemon"
requires-python = ">=3.10"
keywords = ["mpd", "music", "player", "client", "command-line"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio :: Players",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
mpcli = "mpcli.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["mpcli"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
