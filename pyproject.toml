[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "p2pcore"
version = "0.1.0"
description = "Core peer-to-peer networking types: peer IDs, multiaddresses, signed envelopes, peer records and private-network keys."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "p2p",
    "peer-to-peer",
    "peer-id",
    "multiaddr",
    "multihash",
    "cid",
    "envelope",
    "routing",
    "private-network",
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
    "Topic :: System :: Networking",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["p2pcore"]

[tool.hatch.build.targets.sdist]
include = ["p2pcore", "tests", "README.md", "pyproject.toml"]

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
