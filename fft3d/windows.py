"""Analysis, synthesis and frequency-domain weighting windows."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

__all__ = [
    "OverlapWindows",
    "overlap_windows",
    "sharpen_window",
    "dehalo_window",
    "pattern_window",
]

_PI = np.float32(math.pi)


@dataclass(frozen=True)
class OverlapWindows:
    """Edge windows for overlapped blocks: left/right along x, top/bottom along y."""

    analysis_xl: np.ndarray
    analysis_xr: np.ndarray
    analysis_yl: np.ndarray
    analysis_yr: np.ndarray
    synthesis_xl: np.ndarray
    synthesis_xr: np.ndarray
    synthesis_yl: np.ndarray
    synthesis_yr: np.ndarray


def _half_cosines(size: int, span: int) -> tuple[np.ndarray, np.ndarray]:
    """Rising and falling half-cosine edges of ``size`` samples over an overlap ``span``."""
    i = np.arange(size, dtype=np.float32)
    with np.errstate(divide="ignore", invalid="ignore"):
        rising = np.cos(_PI * (i - np.float32(size) + np.float32(0.5)) / np.float32(span * 2))
        falling = np.cos(_PI * (i + np.float32(0.5)) / np.float32(span * 2))
    return rising.astype(np.float32), falling.astype(np.float32)


def overlap_windows(ow, oh, wintype) -> OverlapWindows:
    """Build the overlap windows for overlaps ``ow`` x ``oh``.

    Type 0 uses half-cosines for both analysis and synthesis, type 1 flatter
    analysis windows with complementary synthesis, and any other type flat
    analysis with raised-cosine synthesis.
    """
    if ow < 0 or oh < 0:
        raise ValueError("overlaps must not be negative")

    if wintype == 0:
        xl, xr = _half_cosines(ow, ow)
        yl, yr = _half_cosines(oh, oh)
        return OverlapWindows(xl, xr, yl, yr, xl.copy(), xr.copy(), yl.copy(), yr.copy())

    if wintype == 1:
        xl, _ = _half_cosines(ow, ow)
        # The right x edge spans the vertical overlap.
        _, xr = _half_cosines(ow, oh)
        yl, yr = _half_cosines(oh, oh)
        with np.errstate(invalid="ignore"):
            xl, xr, yl, yr = (np.sqrt(w).astype(np.float32) for w in (xl, xr, yl, yr))
        return OverlapWindows(xl, xr, yl, yr, xl ** 3, xr ** 3, yl ** 3, yr ** 3)

    xl, xr = _half_cosines(ow, ow)
    yl, yr = _half_cosines(oh, oh)
    return OverlapWindows(
        np.ones(ow, dtype=np.float32),
        np.ones(ow, dtype=np.float32),
        np.ones(oh, dtype=np.float32),
        np.ones(oh, dtype=np.float32),
        xl * xl,
        xr * xr,
        yl * yl,
        yr * yr,
    )


def _check_block(bw: int, bh: int) -> None:
    if bw < 2 or bh < 2:
        raise ValueError("block width and height must be at least 2")


def _squared_distance(bw: int, bh: int, svr: float) -> np.ndarray:
    """Squared normalised frequency distance over a half-spectrum block."""
    outwidth = bw // 2 + 1
    j = np.arange(bh)
    dj = np.where(j >= bh // 2, bh - j, j)
    d2v = (dj * dj).astype(np.float32) * np.float32(svr * svr) / np.float32((bh // 2) ** 2)
    i = np.arange(outwidth)
    d2h = (i * i).astype(np.float32) / np.float32((bw // 2) ** 2)
    return (d2v[:, None] + d2h[None, :]).astype(np.float32)


def sharpen_window(bw, bh, svr, scutoff) -> np.ndarray:
    """High-pass weighting of shape ``(bh, bw // 2 + 1)`` used by the sharpener."""
    _check_block(bw, bh)
    d2 = _squared_distance(bw, bh, svr)
    with np.errstate(divide="ignore", invalid="ignore"):
        return (1 - np.exp(-d2 / np.float32(2 * scutoff * scutoff))).astype(np.float32)


def dehalo_window(bw, bh, svr, hr) -> np.ndarray:
    """Band-pass weighting peaking near ``1/hr``, normalised to a maximum of 1."""
    _check_block(bw, bh)
    d2 = _squared_distance(bw, bh, svr)
    hr2 = np.float32(hr * hr)
    window = (np.exp(np.float32(-0.7) * d2 * hr2) - np.exp(-d2 * hr2)).astype(np.float32)
    wmax = max(np.float32(0), window.max())
    with np.errstate(divide="ignore", invalid="ignore"):
        return (window / wmax).astype(np.float32)


def pattern_window(bw, bh, pcutoff) -> np.ndarray:
    """Weighting that suppresses the lowest frequencies when measuring noise."""
    _check_block(bw, bh)
    outwidth = bw // 2 + 1
    j = np.arange(bh, dtype=np.float32)
    fj = np.where(np.arange(bh) < bh // 2, j, np.float32(bh - 1) - j)
    fh2 = (fj * 2.0 / bh) ** 2
    i = np.arange(outwidth, dtype=np.float32)
    # The horizontal term is weighted by the row index as well.
    fw2 = (i[None, :] * 2.0 / bw) * (j[:, None] * 2.0 / bw)
    total = fh2[:, None] + fw2
    with np.errstate(divide="ignore", invalid="ignore"):
        return (total / (total + np.float32(pcutoff * pcutoff))).astype(np.float32)