[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pedidomendez"
version = "1.0.0"
description = "Order, catalogue and user services with an in-memory notification hub for a small delivery shop"
requires-python = ">=3.10"
dependencies = []
keywords = ["orders", "delivery", "catalog", "notifications", "hub"]
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
    "Topic :: Office/Business",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pedidomendez"]

[tool.pytest.ini_options]
addopts = "-ra"
