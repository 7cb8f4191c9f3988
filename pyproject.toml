[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "exeformats"
version = "0.1.0"
description = "Readers for MS-DOS MZ, NE and Java class file headers and layouts"
requires-python = ">=3.10"
dependencies = []
keywords = ["binary", "executable", "mz", "ne", "dos", "java", "classfile", "parser"]
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
    "Topic :: Software Development :: Disassemblers",
    "Topic :: File Formats",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["exeformats"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
