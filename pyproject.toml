[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fft3d"
version = "0.1.0"
description = "Frequency-domain video denoising building blocks: overlapped-block windows, noise patterns, Wiener, Kalman and sharpen kernels"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = ["video", "denoise", "fft", "wiener", "kalman", "sharpen", "filter"]
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
    "Topic :: Multimedia :: Video",
    "Topic :: Scientific/Engineering :: Image Processing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["fft3d"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
