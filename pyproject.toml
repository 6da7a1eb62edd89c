[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xvtools"
version = "0.1.0"
description = "Tools and models for a small RISC-V teaching Unix: file system image builder, Sv39 page tables, ELF headers, shell parser and classic utilities"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "operating-system",
    "unix",
    "riscv",
    "sv39",
    "page-table",
    "mkfs",
    "elf",
    "shell",
    "grep",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System",
    "Topic :: Education",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xv-mkfs = "xvtools.mkfs:main"
xv-grep = "xvtools.grep:main"
xv-wc = "xvtools.wc:main"
xv-ls = "xvtools.ls:main"
xv-cat = "xvtools.simpletools:cat_main"
xv-echo = "xvtools.simpletools:echo_main"
xv-ln = "xvtools.simpletools:ln_main"
xv-mkdir = "xvtools.simpletools:mkdir_main"
xv-rm = "xvtools.simpletools:rm_main"
xv-kill = "xvtools.simpletools:kill_main"

[tool.hatch.build.targets.wheel]
packages = ["xvtools"]

[tool.hatch.build.targets.sdist]
include = ["xvtools", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
