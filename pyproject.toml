[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pmleafsim"
version = "0.1.0"
description = "Simulators of persistent-memory B+-tree leaf designs that count word writes, cache-line flushes and memory fences"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "b+tree",
    "persistent memory",
    "nvm",
    "pcm",
    "wbtree",
    "bztree",
    "pmwcas",
    "benchmark",
    "simulation",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Benchmark",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pmleafsim-article1 = "pmleafsim.article1:main"
pmleafsim-article1-mixed = "pmleafsim.article1:main_extension"
pmleafsim-article2 = "pmleafsim.article2:main"
pmleafsim-article2-mixed = "pmleafsim.article2:main_extension"
pmleafsim-article3 = "pmleafsim.article3:main"
pmleafsim-article3-mixed = "pmleafsim.article3:main_extension"

[tool.hatch.build.targets.wheel]
packages = ["pmleafsim"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
