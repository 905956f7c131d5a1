[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "runbook"
version = "0.1.0"
description = "Parse TOML runbooks describing commands, pipelines, workers and agents"
requires-python = ">=3.11"
dependencies = []
keywords = ["runbook", "pipeline", "toml", "agents", "workflow", "templates"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["runbook"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
