[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "asyncicq"
version = "0.1.0"
description = "Host side of asynchronous interchain queries: channel handshake, query allow-listing, execution and acknowledgement."
requires-python = ">=3.10"
dependencies = []
keywords = ["ibc", "interchain", "query", "icq", "blockchain", "host"]
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
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["asyncicq"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
