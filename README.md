# fft3d

Building blocks for frequency-domain video denoising. A plane is handled as
a set of overlapping blocks; each block is transformed with a 2D real FFT,
its spectrum is filtered, and it is transformed back. All arrays are numpy
arrays: spectra have shape `(blocks, bh, bw // 2 + 1)` and per-block weights
have shape `(bh, bw // 2 + 1)`.

## Installation

```
pip install .
```

The only runtime dependency is numpy.

## What is inside

- `fft3d.engine`
  - `EngineParams`: a dataclass of filter settings and plane geometry
    (`width`, `height`, `frames`, `sigma` and `sigma2`..`sigma4`, `beta`,
    block size `bw`/`bh`, overlap `ow`/`oh`, mode `bt`, `kratio`,
    `sharpen`, `scutoff`, `svr`, `smin`, `smax`, `wintype`, `pcutoff`,
    `pfactor`, `degrid`, `dehalo`, `hr`, `ht`, cropping `l`/`t`/`r`/`b`,
    sample format and subsampling). Sigmas are given on the 8-bit scale;
    negative overlaps select a third of the block size.
  - `FFT3DEngine(params)`: validates the settings, works out the block grid
    (`nox`, `noy`, `howmanyblocks`, `spectrum_shape`), builds the overlap
    windows, sharpen/dehalo/pattern weights, the grid sample and, for
    differing sigmas, a noise pattern. Methods:
    - `forward(blocks)`: 2D real FFT of blocks shaped `(k, bh, bw)`.
    - `inverse(spectrum)`: normalised inverse of `forward`.
    - `effective_bt(n)`: temporal size for frame `n`; frames too near either
      end fall back to 1.
    - `spectrum_params(n)`: the `SpectrumParams` used by the kernels.
    - `kalman_step(spectrum)`: one Kalman step (needs `bt == 0`), keeping
      the estimate and covariances between calls; returns the sharpened
      estimate.
    - `sharpen(spectrum)`: returns the spectrum with sharpen and dehalo
      applied.
  - `sample_scale(bytes_per_sample, bits_per_sample)`: factor mapping 8-bit
    noise levels onto a sample format.
- `fft3d.kernels`: `SpectrumParams`, `power_spectrum`, `grid_correction`,
  `wiener_factor_3d`, `kalman` and `sharpen`. Kernels return new arrays and
  leave their inputs untouched.
- `fft3d.windows`: `overlap_windows(ow, oh, wintype)` returning
  `OverlapWindows`, and the weights `sharpen_window`, `dehalo_window` and
  `pattern_window`.
- `fft3d.pattern`: `sigmas_to_pattern`, `find_pattern_block`, `set_pattern`,
  `put_pattern_only` and `pattern_2d_to_3d`.
- `fft3d.cpuflags`: `CPUFlag` and `decode_cpu_flags`, which turn raw CPUID
  and XCR0 register values (supplied by the caller) into instruction-set
  flags.
- `fft3d.rational`: `muldiv_rational`, `normalize_rational`,
  `add_rational`, `int64_to_int_saturated`, `are_valid_dimensions` and
  `bitblt`.
- `fft3d.alignment`: `is_power2`, `align_number`, `is_aligned` and `clamp`.

## Example

```python
import numpy as np
from fft3d.engine import EngineParams, FFT3DEngine

params = EngineParams(width=64, height=64, sigma=2.0, bt=-1, sharpen=0.5)
engine = FFT3DEngine(params)

blocks = np.random.default_rng(0).random((engine.howmanyblocks, params.bh, params.bw))
spectrum = engine.forward(blocks)
sharpened = engine.sharpen(spectrum)
restored = engine.inverse(sharpened)
```

Invalid settings, such as an overlap larger than half a block, a `beta`
below 1, or a `bt` outside -1..5, raise `ValueError`.

## What it does not do

The package works on block spectra only. It does not read or write video,
does not cut a frame plane into overlapping blocks or blend filtered blocks
back into a plane, and does not drive multi-frame Wiener filtering or a
frame cache itself: the kernels are there, but assembling frames around them
is left to the caller. It does not query the CPU; `decode_cpu_flags` only
decodes register values it is given.

## Tests

```
pip install .[test]
pytest
```