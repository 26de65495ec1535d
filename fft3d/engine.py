"""Block-spectrum engine: geometry, windows, normalisation and Kalman state."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass

import numpy as np

from fft3d.kernels import SpectrumParams, kalman, sharpen as sharpen_spectrum
from fft3d.pattern import sigmas_to_pattern
from fft3d.windows import (
    OverlapWindows,
    dehalo_window,
    overlap_windows,
    pattern_window,
    sharpen_window,
)

__all__ = ["EngineParams", "FFT3DEngine", "sample_scale"]


def _cdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def sample_scale(bytes_per_sample, bits_per_sample) -> float:
    """Factor that maps 8-bit noise levels onto the sample range of a format."""
    if bytes_per_sample == 1:
        return 1.0
    if bytes_per_sample == 2:
        return float(1 << (bits_per_sample - 8))
    return 1 / 255.0


@dataclass
class EngineParams:
    """Filter settings and the geometry of the plane being processed.

    Noise levels are given on the 8-bit scale; ``sigma2``..``sigma4`` default
    to ``sigma``. Negative overlaps select a third of the block size.
    """

    width: int
    height: int
    frames: int = 1
    sigma: float = 2.0
    beta: float = 1.0
    bw: int = 32
    bh: int = 32
    bt: int = 3
    ow: int = -1
    oh: int = -1
    kratio: float = 2.0
    sharpen: float = 0.0
    scutoff: float = 0.3
    svr: float = 1.0
    smin: float = 4.0
    smax: float = 20.0
    interlaced: bool = False
    wintype: int = 0
    pframe: int = 0
    px: int = 0
    py: int = 0
    pshow: bool = False
    pcutoff: float = 0.1
    pfactor: float = 0.0
    sigma2: float | None = None
    sigma3: float | None = None
    sigma4: float | None = None
    degrid: float = 1.0
    dehalo: float = 0.0
    hr: float = 2.0
    ht: float = 50.0
    l: int = 0
    t: int = 0
    r: int = 0
    b: int = 0
    bytes_per_sample: int = 1
    bits_per_sample: int = 8
    subsampling_w: int = 0
    subsampling_h: int = 0
    is_chroma: bool = False


class FFT3DEngine:
    """Holds everything needed to filter the block spectra of one plane."""

    def __init__(self, params):
        ep = dataclasses.replace(params)
        for name in ("sigma2", "sigma3", "sigma4"):
            if getattr(ep, name) is None:
                setattr(ep, name, ep.sigma)

        factor = sample_scale(ep.bytes_per_sample, ep.bits_per_sample)
        ep.sigma *= factor
        ep.sigma2 *= factor
        ep.sigma3 *= factor
        ep.sigma4 *= factor
        ep.smin *= factor
        ep.smax *= factor

        if ep.ow * 2 > ep.bw:
            raise ValueError("ow must be less than bw / 2")
        if ep.oh * 2 > ep.bh:
            raise ValueError("oh must be less than bh / 2")
        if ep.ow < 0:
            ep.ow = ep.bw // 3
        if ep.oh < 0:
            ep.oh = ep.bh // 3
        if ep.bt < -1 or ep.bt > 5:
            raise ValueError("bt must be -1 (Sharpen), 0 (Kalman), 1..5 (Wiener)")
        if ep.bw - ep.ow <= 0 or ep.bh - ep.oh <= 0:
            raise ValueError("block size must exceed the overlap")

        xshift = ep.subsampling_w if ep.is_chroma else 0
        yshift = ep.subsampling_h if ep.is_chroma else 0
        self.nox = _cdiv(((ep.width - ep.l - ep.r) >> xshift) - ep.ow + (ep.bw - ep.ow - 1),
                         ep.bw - ep.ow) + 2
        self.noy = _cdiv(((ep.height - ep.t - ep.b) >> yshift) - ep.oh + (ep.bh - ep.oh - 1),
                         ep.bh - ep.oh) + 2
        self.mirw = ep.bw - ep.ow
        self.mirh = ep.bh - ep.oh

        if ep.beta < 1:
            raise ValueError("beta must be not less 1.0")

        self.params = ep
        self.coverwidth = self.nox * (ep.bw - ep.ow) + ep.ow
        self.coverheight = self.noy * (ep.bh - ep.oh) + ep.oh
        self.coverpitch = ((self.coverwidth + 15) // 16) * 16
        self.outwidth = ep.bw // 2 + 1
        self.howmanyblocks = self.nox * self.noy
        self.spectrum_shape = (self.howmanyblocks, ep.bh, self.outwidth)

        self.windows: OverlapWindows = overlap_windows(ep.ow, ep.oh, ep.wintype)
        self.wsharpen = sharpen_window(ep.bw, ep.bh, ep.svr, ep.scutoff)
        self.wdehalo = dehalo_window(ep.bw, ep.bh, ep.svr, ep.hr)
        self.pwin = pattern_window(ep.bw, ep.bh, ep.pcutoff)

        self.norm = 1.0 / (ep.bw * ep.bh)
        root_norm = float(np.sqrt(self.norm))
        self.sigma_squared_noise_normed_2d = ep.sigma * ep.sigma / self.norm
        self.sigma_noise_normed_2d = ep.sigma / root_norm
        self.sigma_motion_normed = ep.sigma * ep.kratio / root_norm
        self.sigma_squared_sharpen_min_normed = ep.smin * ep.smin / self.norm
        self.sigma_squared_sharpen_max_normed = ep.smax * ep.smax / self.norm
        self.ht2n = ep.ht * ep.ht / self.norm

        if ep.bt == 0:
            self.outlast = np.zeros(self.spectrum_shape, dtype=np.complex64)
            start = np.float32(self.sigma_squared_noise_normed_2d)
            self.covar = np.full(self.spectrum_shape, start + 1j * start, dtype=np.complex64)
            self.covar_process = self.covar.copy()
        else:
            self.outlast = self.covar = self.covar_process = None

        sigmas_differ = ep.sigma2 != ep.sigma or ep.sigma3 != ep.sigma or ep.sigma4 != ep.sigma
        if sigmas_differ and ep.pfactor == 0:
            self.pattern2d = sigmas_to_pattern(ep.sigma, ep.sigma2, ep.sigma3, ep.sigma4,
                                               ep.bh, self.outwidth, self.norm)
            self.pattern_set = True
            ep.pfactor = 1
        else:
            self.pattern2d = np.zeros((ep.bh, self.outwidth), dtype=np.float32)
            self.pattern_set = False

        self.gridsample = self._grid_sample()

    def _grid_sample(self) -> np.ndarray:
        """Spectrum of one block of a full-scale flat plane seen through the analysis window."""
        ep = self.params
        if ep.bytes_per_sample == 1:
            level = 255.0
        elif ep.bytes_per_sample == 2:
            level = float((1 << ep.bits_per_sample) - 1)
        else:
            level = 1.0
        w = self.windows
        wx = np.concatenate([w.analysis_xl, np.ones(ep.bw - 2 * ep.ow, np.float32), w.analysis_xr])
        wy = np.concatenate([w.analysis_yl, np.ones(ep.bh - 2 * ep.oh, np.float32), w.analysis_yr])
        block = (np.float32(level) * np.outer(wy, wx)).astype(np.float32)
        return np.fft.rfft2(block).astype(np.complex64)

    def forward(self, blocks) -> np.ndarray:
        """Unnormalised 2D real FFT of blocks shaped ``(k, bh, bw)``."""
        data = np.asarray(blocks, dtype=np.float32)
        if data.ndim != 3 or data.shape[1:] != (self.params.bh, self.params.bw):
            raise ValueError(f"blocks must have shape (k, {self.params.bh}, {self.params.bw})")
        return np.fft.rfft2(data).astype(np.complex64)

    def inverse(self, spectrum) -> np.ndarray:
        """Normalised inverse of :meth:`forward`, giving blocks shaped ``(k, bh, bw)``."""
        data = np.asarray(spectrum, dtype=np.complex64)
        if data.ndim != 3 or data.shape[1:] != (self.params.bh, self.outwidth):
            raise ValueError(f"spectrum must have shape (k, {self.params.bh}, {self.outwidth})")
        return np.fft.irfft2(data, s=(self.params.bh, self.params.bw)).astype(np.float32)

    def effective_bt(self, n) -> int:
        """Temporal size used for frame ``n``; edge frames fall back to 2D filtering."""
        bt = self.params.bt
        if _cdiv(bt, 2) > n or _cdiv(bt - 1, 2) > self.params.frames - 1 - n:
            return 1
        return bt

    def spectrum_params(self, n) -> SpectrumParams:
        """Kernel settings for frame ``n``."""
        if not 0 <= n < self.params.frames:
            raise IndexError(f"frame {n} is outside 0..{self.params.frames - 1}")
        ep = self.params
        return SpectrumParams(
            sigma_squared_noise_normed_2d=self.sigma_squared_noise_normed_2d,
            kratio2=ep.kratio * ep.kratio,
            pattern2d=self.pattern2d,
            sharpen=ep.sharpen,
            sigma_squared_sharpen_min_normed=self.sigma_squared_sharpen_min_normed,
            sigma_squared_sharpen_max_normed=self.sigma_squared_sharpen_max_normed,
            wsharpen=self.wsharpen,
            dehalo=ep.dehalo,
            wdehalo=self.wdehalo,
            ht2n=self.ht2n,
            gridsample=self.gridsample,
            covar=self.covar,
            covar_process=self.covar_process,
        )

    def _check_spectrum(self, spectrum) -> np.ndarray:
        data = np.asarray(spectrum, dtype=np.complex64)
        if data.shape != self.spectrum_shape:
            raise ValueError(f"spectrum must have shape {self.spectrum_shape}, got {data.shape}")
        return data

    def kalman_step(self, spectrum) -> np.ndarray:
        """Feed the next frame's spectrum to the Kalman filter and return the sharpened estimate."""
        if self.params.bt != 0:
            raise ValueError("Kalman filtering needs bt == 0")
        data = self._check_spectrum(spectrum)
        use_pattern = self.params.pfactor != 0
        if use_pattern and not self.pattern_set:
            raise RuntimeError("noise pattern has not been set")
        params = self.spectrum_params(0)
        estimate, self.covar, self.covar_process = kalman(data, self.outlast, params, use_pattern)
        self.outlast = estimate
        return sharpen_spectrum(estimate.copy(), params, self.params.degrid)

    def sharpen(self, spectrum) -> np.ndarray:
        """Apply the sharpen and dehalo settings to a full spectrum."""
        data = self._check_spectrum(spectrum)
        return sharpen_spectrum(data, self.spectrum_params(0), self.params.degrid)