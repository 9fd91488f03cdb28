[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "scanoperator"
version = "0.1.0"
description = "Building blocks for a Kubernetes security-scanning operator: settings, object references, spec hashing, registry credentials, event predicates and scan job limits."
requires-python = ">=3.10"
dependencies = []
keywords = ["kubernetes", "operator", "security", "scanning", "docker", "registry"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
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
packages = ["scanoperator"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
