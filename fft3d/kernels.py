"""Per-coefficient spectral kernels: power spectrum, Wiener, Kalman and sharpening.

Spectra are complex arrays of shape ``(blocks, bh, outwidth)``; per-block
weights (patterns, windows, grid sample) have shape ``(bh, outwidth)`` and
apply to every block alike.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

__all__ = [
    "SpectrumParams",
    "power_spectrum",
    "grid_correction",
    "wiener_factor_3d",
    "kalman",
    "sharpen",
]

_EPSILON = np.float32(1.0e-15)


@dataclass
class SpectrumParams:
    """Normalised filter settings shared by the spectral kernels."""

    sigma_squared_noise_normed_2d: float = 0.0
    kratio2: float = 0.0
    pattern2d: np.ndarray | None = None
    sharpen: float = 0.0
    sigma_squared_sharpen_min_normed: float = 0.0
    sigma_squared_sharpen_max_normed: float = 0.0
    wsharpen: np.ndarray | None = None
    dehalo: float = 0.0
    wdehalo: np.ndarray | None = None
    ht2n: float = 0.0
    gridsample: np.ndarray | None = None
    covar: np.ndarray | None = None
    covar_process: np.ndarray | None = None


def _as_spectrum(spectrum, name: str = "spectrum") -> np.ndarray:
    data = np.asarray(spectrum, dtype=np.complex64)
    if data.ndim != 3:
        raise ValueError(f"{name} must have shape (blocks, bh, outwidth)")
    return data


def _as_block(values, shape, name: str, dtype) -> np.ndarray:
    if values is None:
        raise ValueError(f"{name} is required")
    data = np.asarray(values, dtype=dtype)
    if data.shape != tuple(shape):
        raise ValueError(f"{name} must have shape {tuple(shape)}, got {data.shape}")
    return data


def _complex(real: np.ndarray, imag: np.ndarray) -> np.ndarray:
    result = np.empty(np.shape(real), dtype=np.complex64)
    result.real = real
    result.imag = imag
    return result


def power_spectrum(data) -> np.ndarray:
    """Power of each complex coefficient plus a tiny epsilon, as float32."""
    values = np.asarray(data, dtype=np.complex64)
    return (values.real * values.real + values.imag * values.imag + _EPSILON).astype(np.float32)


def grid_correction(spectrum, gridsample, degrid) -> np.ndarray:
    """Per-block grid (windowing) correction, scaled by each block's DC term.

    Returns zeros when ``degrid`` is 0.
    """
    data = _as_spectrum(spectrum)
    if degrid == 0:
        return np.zeros_like(data)
    grid = _as_block(gridsample, data.shape[1:], "gridsample", np.complex64)
    with np.errstate(divide="ignore", invalid="ignore"):
        fraction = np.float32(degrid) * data[:, 0, 0].real / grid[0, 0].real
    return (fraction[:, None, None] * grid).astype(np.complex64)


def wiener_factor_3d(data, sigma, beta) -> np.ndarray:
    """Apply a limited Wiener gain ``max((psd - sigma) / psd, (beta - 1) / beta)``."""
    values = np.asarray(data, dtype=np.complex64)
    psd = power_spectrum(values)
    low_limit = np.float32((beta - 1) / beta)
    factor = np.maximum((psd - np.asarray(sigma, dtype=np.float32)) / psd, low_limit)
    return (values * factor).astype(np.complex64)


def kalman(outcur, outlast, params, use_pattern):
    """Run one Kalman step on the current spectrum against the previous estimate.

    Returns ``(estimate, covar, covar_process)``. Real and imaginary parts
    carry independent covariances, stored in the real and imaginary parts of
    the covariance arrays. A coefficient whose change in either part exceeds
    the motion threshold is reset to the current value.
    """
    cur = _as_spectrum(outcur, "outcur")
    prev = _as_spectrum(outlast, "outlast")
    if cur.shape != prev.shape:
        raise ValueError("outcur and outlast must have the same shape")
    covar = _as_block(params.covar, cur.shape, "covar", np.complex64)
    process = _as_block(params.covar_process, cur.shape, "covar_process", np.complex64)

    if use_pattern:
        pattern = _as_block(params.pattern2d, cur.shape[1:], "pattern2d", np.float32)
        sigma = np.maximum(pattern, _EPSILON)[None, :, :]
    else:
        sigma = np.float32(params.sigma_squared_noise_normed_2d)
    sigma_full = np.broadcast_to(np.asarray(sigma, dtype=np.float32), cur.shape)
    threshold = sigma_full * np.float32(params.kratio2)

    diff_re = cur.real - prev.real
    diff_im = cur.imag - prev.imag
    motion = (diff_re * diff_re > threshold) | (diff_im * diff_im > threshold)

    def update(c, p, cv, cp):
        total = cv + cp
        gain = total / (total + sigma_full)
        return gain * c + (1 - gain) * p, (1 - gain) * total, gain * gain * sigma_full

    with np.errstate(divide="ignore", invalid="ignore"):
        re_out, re_cov, re_proc = update(cur.real, prev.real, covar.real, process.real)
        im_out, im_cov, im_proc = update(cur.imag, prev.imag, covar.imag, process.imag)

    reset = _complex(sigma_full, sigma_full)
    estimate = np.where(motion, cur, _complex(re_out, im_out)).astype(np.complex64)
    new_covar = np.where(motion, reset, _complex(re_cov, im_cov)).astype(np.complex64)
    new_process = np.where(motion, reset, _complex(re_proc, im_proc)).astype(np.complex64)
    return estimate, new_covar, new_process


def sharpen(spectrum, params, degrid) -> np.ndarray:
    """Sharpen and/or dehalo a spectrum; returns an unchanged copy when both are off."""
    data = _as_spectrum(spectrum)
    if params.sharpen == 0 and params.dehalo == 0:
        return data.copy()

    block_shape = data.shape[1:]
    if degrid != 0:
        correction = grid_correction(data, params.gridsample, degrid)
    else:
        correction = np.zeros_like(data)
    corrected = data - correction
    psd = power_spectrum(corrected)
    factor = np.ones(data.shape, dtype=np.float32)

    with np.errstate(divide="ignore", invalid="ignore"):
        if params.sharpen != 0:
            window = _as_block(params.wsharpen, block_shape, "wsharpen", np.float32)
            smin = np.float32(params.sigma_squared_sharpen_min_normed)
            smax = np.float32(params.sigma_squared_sharpen_max_normed)
            ratio = psd * smax / ((psd + smin) * (psd + smax))
            factor *= 1 + np.float32(params.sharpen) * window * np.sqrt(ratio)
        if params.dehalo != 0:
            window = _as_block(params.wdehalo, block_shape, "wdehalo", np.float32)
            base = psd + np.float32(params.ht2n)
            factor *= base / (base + np.float32(params.dehalo) * window * psd)

    return (corrected * factor + correction).astype(np.complex64)