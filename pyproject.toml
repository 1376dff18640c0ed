[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ryekit"
version = "0.1.0"
description = "Python project management helpers: requirements, version bumps, config editing, script and shim resolution, publishing"
requires-python = ">=3.10"
keywords = ["packaging", "pyproject", "virtualenv", "requirements", "project-management"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "packaging",
    "tomlkit",
    "psutil",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ryekit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
