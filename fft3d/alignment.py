"""Alignment arithmetic and clamping helpers."""

from __future__ import annotations

__all__ = ["is_power2", "align_number", "is_aligned", "clamp"]


def is_power2(n: int) -> bool:
    """Tell whether ``n`` is a positive power of two."""
    return bool(n) and not (n & (n - 1))


def _require_power2(align: int) -> None:
    if not is_power2(align):
        raise ValueError(f"alignment must be a power of two, got {align}")


def align_number(n: int, align: int) -> int:
    """Round ``n`` up to the next multiple of ``align``."""
    _require_power2(align)
    return (n + align - 1) & ~(align - 1)


def is_aligned(address: int, align: int) -> bool:
    """Tell whether ``address`` is a multiple of ``align``."""
    _require_power2(align)
    return (address & (align - 1)) == 0


def clamp(n, low, high):
    """Limit ``n`` to ``[low, high]``; ``low`` wins if the bounds cross."""
    if n > high:
        n = high
    return low if n < low else n