"""Rational arithmetic and small frame helpers used by video hosts."""

from __future__ import annotations

import math

__all__ = [
    "muldiv_rational",
    "normalize_rational",
    "add_rational",
    "int64_to_int_saturated",
    "are_valid_dimensions",
    "bitblt",
]

INT_MAX = 2**31 - 1
INT_MIN = -(2**31)


def muldiv_rational(num: int, den: int, mul: int, div: int) -> tuple[int, int]:
    """Return ``num/den * mul/div`` reduced; an invalid rational (den 0) is returned unchanged."""
    if not den:
        return num, den
    if not div:
        raise ZeroDivisionError("divisor must not be zero")
    num *= mul
    den *= div
    g = math.gcd(num, den)
    return num // g, den // g


def normalize_rational(num: int, den: int) -> tuple[int, int]:
    """Return the rational reduced to lowest terms."""
    return muldiv_rational(num, den, 1, 1)


def add_rational(num: int, den: int, addnum: int, addden: int) -> tuple[int, int]:
    """Return ``num/den + addnum/addden``; reduced unless the denominators already match."""
    if not den:
        return num, den
    if not addden:
        raise ZeroDivisionError("added rational has a zero denominator")
    if den == addden:
        return num + addnum, den
    new_num = num * addden + addnum * den
    new_den = den * addden
    return normalize_rational(new_num, new_den)


def int64_to_int_saturated(value: int) -> int:
    """Clamp an integer into the signed 32-bit range."""
    return max(INT_MIN, min(INT_MAX, value))


def are_valid_dimensions(subsampling_w: int, subsampling_h: int, width: int, height: int) -> bool:
    """Tell whether width and height are multiples of the chroma subsampling factors."""
    return width % (1 << subsampling_w) == 0 and height % (1 << subsampling_h) == 0


def bitblt(dst, dst_stride: int, src, src_stride: int, row_size: int, height: int):
    """Copy ``height`` rows of ``row_size`` bytes from ``src`` into ``dst`` and return ``dst``."""
    if not height:
        return dst
    dst_view = memoryview(dst).cast("B")
    src_view = memoryview(src).cast("B")
    if dst_view.readonly:
        raise TypeError("destination buffer is read-only")
    for row in range(height):
        s = row * src_stride
        d = row * dst_stride
        if s < 0 or d < 0 or s + row_size > len(src_view) or d + row_size > len(dst_view):
            raise ValueError(f"row {row} lies outside the buffers")
        dst_view[d:d + row_size] = src_view[s:s + row_size]
    return dst