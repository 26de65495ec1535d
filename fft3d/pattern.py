"""Noise pattern estimation on block spectra.

A spectrum is a complex array of shape ``(blocks, bh, outwidth)`` whose
blocks are stored row by row: block ``by * nox + bx`` sits at column ``bx``
of row ``by``. Per-block arrays (``pwin``, ``gridsample``, patterns) have
shape ``(bh, outwidth)``.
"""

from __future__ import annotations

import math

import numpy as np

__all__ = [
    "sigmas_to_pattern",
    "find_pattern_block",
    "set_pattern",
    "put_pattern_only",
    "pattern_2d_to_3d",
]

# Any block whose windowed noise power is not below this is never chosen.
_SIGMA_SQUARED_LIMIT = 1e15


def _as_spectrum(spectrum) -> np.ndarray:
    data = np.asarray(spectrum, dtype=np.complex64)
    if data.ndim != 3:
        raise ValueError("spectrum must have shape (blocks, bh, outwidth)")
    return data


def _as_block(values, shape, name, dtype) -> np.ndarray:
    data = np.asarray(values, dtype=dtype)
    if data.shape != shape:
        raise ValueError(f"{name} must have shape {shape}, got {data.shape}")
    return data


def _block_index(nblocks: int, nox: int, px: int, py: int) -> int:
    if nox <= 0 or not 0 <= px < nox or py < 0:
        raise IndexError(f"block ({px}, {py}) is outside a grid {nox} blocks wide")
    index = py * nox + px
    if index >= nblocks:
        raise IndexError(f"block ({px}, {py}) is outside the spectrum")
    return index


def _grid_corrected(block: np.ndarray, degrid: float, gridsample: np.ndarray) -> np.ndarray:
    with np.errstate(divide="ignore", invalid="ignore"):
        gcur = np.float32(degrid) * block[..., 0, 0].real / gridsample[0, 0].real
    return block - gcur[..., None, None] * gridsample


def sigmas_to_pattern(sigma, sigma2, sigma3, sigma4, bh, outwidth, norm) -> np.ndarray:
    """Build a 2D noise pattern interpolating four sigmas from high to zero frequency."""
    if bh <= 0 or outwidth <= 0:
        raise ValueError("bh and outwidth must be positive")
    ft2 = math.sqrt(0.5) / 2
    ft3 = math.sqrt(0.5) / 4
    h = np.arange(bh)
    fy = (bh - 2.0 * np.abs(h - bh // 2)) / bh
    fx = np.arange(outwidth) / outwidth
    f = np.sqrt((fx[None, :] ** 2 + fy[:, None] ** 2) * 0.5)

    low = sigma4 + (sigma3 - sigma4) * f / ft3
    middle = sigma3 + (sigma2 - sigma3) * (f - ft3) / (ft2 - ft3)
    high = sigma + (sigma2 - sigma) * (1 - f) / (1 - ft2)
    sigmacur = np.where(f < ft3, low, np.where(f < ft2, middle, high))
    return (sigmacur * sigmacur / norm).astype(np.float32)


def find_pattern_block(spectrum, nox, noy, pwin, degrid, gridsample):
    """Return ``(px, py)`` of the inner block with the least windowed noise power.

    Blocks within two of any edge are skipped. Returns ``None`` when no block
    qualifies.
    """
    data = _as_spectrum(spectrum)
    nblocks, bh, outwidth = data.shape
    if nox * noy != nblocks:
        raise ValueError(f"spectrum holds {nblocks} blocks, not {nox}x{noy}")
    window = _as_block(pwin, (bh, outwidth), "pwin", np.float32)
    grid = _as_block(gridsample, (bh, outwidth), "gridsample", np.complex64)
    if noy <= 4 or nox <= 4:
        return None

    region = data.reshape(noy, nox, bh, outwidth)[2:noy - 2, 2:nox - 2]
    corrected = _grid_corrected(region, degrid, grid)
    power = (corrected.real ** 2 + corrected.imag ** 2) * window
    sums = power.sum(axis=(-2, -1))

    best = int(np.argmin(sums))
    if not sums.flat[best] < _SIGMA_SQUARED_LIMIT:
        return None
    row, col = divmod(best, sums.shape[1])
    return col + 2, row + 2


def set_pattern(spectrum, nox, px, py, pwin, degrid, gridsample):
    """Take the noise pattern from block ``(px, py)``.

    Returns ``(pattern2d, psigma)``: the windowed power spectrum of the block
    and its mean standard deviation.
    """
    data = _as_spectrum(spectrum)
    nblocks, bh, outwidth = data.shape
    window = _as_block(pwin, (bh, outwidth), "pwin", np.float32)
    grid = _as_block(gridsample, (bh, outwidth), "gridsample", np.complex64)
    block = data[_block_index(nblocks, nox, px, py)]

    weight = float(window.sum(dtype=np.float64))
    corrected = _grid_corrected(block, degrid, grid)
    pattern2d = ((corrected.real ** 2 + corrected.imag ** 2) * window).astype(np.float32)
    total = float(pattern2d.sum(dtype=np.float64))
    with np.errstate(divide="ignore", invalid="ignore"):
        psigma = float(np.sqrt(np.float64(total) / (weight * bh * outwidth)))
    return pattern2d, psigma


def put_pattern_only(spectrum, nox, px, py) -> np.ndarray:
    """Return a copy of the spectrum with every block but ``(px, py)`` zeroed."""
    data = _as_spectrum(spectrum)
    keep = _block_index(data.shape[0], nox, px, py)
    result = np.zeros_like(data)
    result[keep] = data[keep]
    return result


def pattern_2d_to_3d(pattern2d, mult) -> np.ndarray:
    """Scale a 2D pattern for use with a temporal window of ``mult`` frames."""
    return (np.asarray(pattern2d, dtype=np.float32) * np.float32(mult)).astype(np.float32)