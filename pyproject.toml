[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "botplugins"
version = "0.1.0"
description = "Building blocks for group chat bots: scheduled reminders, group management helpers, MIDI melodies, Japanese grammar, poems, lookups and local image galleries"
requires-python = ">=3.10"
keywords = [
    "chat bot",
    "group management",
    "reminders",
    "cron",
    "midi",
    "plugins",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Natural Language :: Chinese (Simplified)",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
    "Topic :: Multimedia :: Sound/Audio :: MIDI",
]
dependencies = [
    "requests>=2.28",
    "mido>=1.2",
    "pillow>=9.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[tool.hatch.build.targets.wheel]
packages = ["botplugins"]

[tool.hatch.build.targets.sdist]
include = [
    "botplugins",
    "tests",
    "pyproject.toml",
    "README.md",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
