[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "voxtree"
version = "0.1.0"
description = "Sparse voxel octrees: build, query and load from .rsvo and MagicaVoxel .vox files"
requires-python = ">=3.10"
dependencies = []
keywords = ["voxel", "octree", "svo", "rsvo", "magicavoxel", "vox"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Graphics :: 3D Modeling",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["voxtree"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
