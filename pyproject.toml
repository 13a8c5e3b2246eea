[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "jamtools"
version = "0.1.0"
description = "Tools for maintaining cloud native buildpack, extension and builder configuration files"
requires-python = ">=3.11"
keywords = ["buildpacks", "cnb", "toml", "oci", "semver", "dependencies"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "tomli-w",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
jam = "jamtools.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["jamtools"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
