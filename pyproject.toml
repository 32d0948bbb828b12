[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "livesim"
version = "1.6.0"
description = "Building blocks for a live MPEG-DASH simulator: MPD patches, CMAF chunk parsing, SCTE-35 events, time subtitles and DRM configuration"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "dash",
    "mpeg-dash",
    "mpd",
    "mpd-patch",
    "cmaf",
    "mp4",
    "scte-35",
    "cpix",
    "subtitles",
    "live streaming",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["livesim"]

[tool.hatch.build.targets.sdist]
include = ["livesim", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
