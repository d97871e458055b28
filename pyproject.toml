[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "taskworks"
version = "0.1.0"
description = "Thread primitives and an event loop with file, socket, timer and polling events for task runtimes"
requires-python = ">=3.10"
dependencies = []
keywords = ["tasks", "threads", "event loop", "polling", "timers", "semaphore", "rwlock"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["taskworks"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
