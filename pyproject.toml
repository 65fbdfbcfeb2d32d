[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "modscope"
version = "0.1.0"
description = "Modbus master toolkit: register encoding, request building, a TCP client, polling forms and saved form state"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "modbus",
    "modbus-tcp",
    "scada",
    "plc",
    "registers",
    "industrial",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Manufacturing",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Interface Engine/Protocol Translator",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["modscope"]

[tool.pytest.ini_options]
addopts = "-ra"
