[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "deformfusion"
version = "0.1.0"
description = "Deformation graphs, sparse Jacobians and supporting utilities for dense RGB-D surfel mapping"
requires-python = ">=3.10"
dependencies = [
    "numpy",
    "scipy",
]
keywords = [
    "slam",
    "rgb-d",
    "deformation-graph",
    "surfel",
    "odometry",
    "sparse",
    "jacobian",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Image Processing",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["deformfusion"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
