[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dexedpi"
version = "0.1.0"
description = "Computer-keyboard MIDI, RTP-MIDI packet handling and performance files for an FM synthesizer"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "midi",
    "rtp-midi",
    "applemidi",
    "synthesizer",
    "dx7",
    "performance",
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
    "Topic :: Multimedia :: Sound/Audio :: MIDI",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["dexedpi"]

[tool.hatch.build.targets.sdist]
include = [
    "dexedpi",
    "tests",
]

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
