[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "relkit"
version = "0.1.0"
description = "Columnar relations with a small join engine, query-to-SQL translator, test harness, bit-array and wavelet-tree indexes, and MurmurHash64A"
requires-python = ">=3.10"
dependencies = []
keywords = ["join", "query", "relation", "wavelet tree", "rank", "select", "murmurhash"]
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
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
relkit-driver = "relkit.driver:main"
relkit-query2sql = "relkit.query2sql:main"
relkit-harness = "relkit.harness:main"
relkit-wavelet = "relkit.wavelet_cli:main"

[tool.hatch.build.targets.wheel]
packages = ["relkit"]

[tool.pytest.ini_options]
addopts = "-ra"
