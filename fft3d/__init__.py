"""Frequency-domain overlapped-block video denoising building blocks."""

__version__ = "0.1.0"

__all__ = ["alignment", "cpuflags", "engine", "kernels", "pattern", "rational", "windows"]