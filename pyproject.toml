[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "datatransfer"
version = "0.1.0"
description = "Channel state tracking, CID lists and CID sets for peer-to-peer data transfers"
requires-python = ">=3.10"
keywords = ["data-transfer", "cid", "cbor", "state-machine", "peer-to-peer"]
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
    "Topic :: Communications :: File Sharing",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]
dependencies = [
    "cbor2",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["datatransfer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
