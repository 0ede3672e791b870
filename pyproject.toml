[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "daprsdk"
version = "0.1.0"
description = "Client library for the Dapr sidecar: state, pub/sub, secrets, locks, service invocation, metadata and streaming crypto."
requires-python = ">=3.10"
dependencies = []
keywords = ["dapr", "sidecar", "microservices", "pubsub", "state", "client"]
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
    "Topic :: Software Development :: Libraries :: Application Frameworks",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["daprsdk"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
