[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "devhub"
version = "0.1.0"
description = "In-memory model of a developer community hub: communities, add-ons, label access control and a change log"
requires-python = ">=3.10"
dependencies = []
keywords = ["community", "access-control", "message-board", "moderation", "add-ons"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content :: Message Boards",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["devhub"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
