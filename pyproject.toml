[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "starknodekit"
version = "0.1.0"
description = "Install, configure and launch Ethereum and Starknet node clients"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "ethereum",
    "starknet",
    "node",
    "geth",
    "reth",
    "lighthouse",
    "prysm",
    "juno",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Operating System :: MacOS",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["starknodekit"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
