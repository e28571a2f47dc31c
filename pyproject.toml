[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nkernel"
version = "0.1.0"
description = "A small cooperative thread kernel with pluggable schedulers, timers, semaphores and reader/writer locks"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "threads",
    "scheduler",
    "round-robin",
    "fcfs",
    "semaphore",
    "rwlock",
    "priority-queue",
    "knapsack",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["nkernel"]

[tool.hatch.build.targets.sdist]
include = ["nkernel", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
