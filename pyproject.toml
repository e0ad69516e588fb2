[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tmcatalog"
version = "0.1.0"
description = "Thing Model catalog core: TM identifiers, versions, indexes, search, digests and import preparation"
requires-python = ">=3.10"
dependencies = []
keywords = ["web of things", "thing model", "catalog", "wot", "index"]
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
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tmcatalog"]

[tool.pytest.ini_options]
addopts = "-ra"
