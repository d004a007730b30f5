[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gritsmesh"
version = "0.1.0"
description = "Spherical ROAM level-of-detail mesh for planet rendering, with BIL elevation tiles"
requires-python = ">=3.10"
dependencies = []
keywords = ["roam", "mesh", "level-of-detail", "terrain", "elevation", "gis", "sphere"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: GIS",
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["gritsmesh"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
