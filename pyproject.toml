[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rowcluster"
version = "0.1.0"
description = "Count rows in an image by edge detection, contour centroids and DBSCAN clustering"
requires-python = ">=3.10"
keywords = ["dbscan", "clustering", "image processing", "contours", "edge detection", "crop rows"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Processing",
]
dependencies = [
    "numpy",
    "scipy",
    "pillow",
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
rowcluster = "rowcluster.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["rowcluster"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
