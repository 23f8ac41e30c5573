[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kotelhw"
version = "0.1.0"
description = "Pixel buffers, bitmaps, text rendering and bus protocols for LED dot matrices, MAX7219 modules and 1-Wire devices"
requires-python = ">=3.10"
dependencies = []
keywords = ["led-matrix", "charlieplexing", "max7219", "onewire", "bitmap", "font", "crc", "embedded"]
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
    "Typing :: Typed",
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kotelhw"]

[tool.hatch.build.targets.sdist]
include = ["kotelhw", "tests", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
