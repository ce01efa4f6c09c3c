[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "astgraph"
version = "0.3.0"
description = "Resolution, file-based route detection, process tracing and a SQLite schema for source-code symbol graphs"
requires-python = ">=3.10"
dependencies = []
keywords = ["code-graph", "static-analysis", "call-graph", "c3-mro", "routes", "sqlite"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["astgraph"]

[tool.pytest.ini_options]
addopts = "-ra"
