[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rubrduck"
version = "0.1.0"
description = "Building blocks of an AI coding agent: file and git tools, risk analysis of tool calls, and approval of operations"
requires-python = ">=3.10"
dependencies = []
keywords = ["ai", "agent", "coding-assistant", "llm", "tools", "approval", "risk"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rubrduck"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
