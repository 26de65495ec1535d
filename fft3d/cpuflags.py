"""Decoding of x86 CPUID/XCR0 register values into instruction-set flags."""

from __future__ import annotations

import enum

__all__ = ["CPUFlag", "decode_cpu_flags"]

_MASK32 = 0xFFFFFFFF


class CPUFlag(enum.IntFlag):
    """Instruction-set extensions, bit-compatible with the classic CPUF_* values."""

    NONE = 0
    FORCE = 0x01
    FPU = 0x02
    MMX = 0x04
    INTEGER_SSE = 0x08
    SSE = 0x10
    SSE2 = 0x20
    THREEDNOW = 0x40
    THREEDNOW_EXT = 0x80
    X86_64 = 0xA0
    SSE3 = 0x100
    SSSE3 = 0x200
    SSE4 = 0x400
    SSE4_1 = 0x400
    AVX = 0x800
    SSE4_2 = 0x1000
    AVX2 = 0x2000
    FMA3 = 0x4000
    F16C = 0x8000
    MOVBE = 0x10000
    POPCNT = 0x20000
    AES = 0x40000
    FMA4 = 0x80000
    AVX512F = 0x100000
    AVX512DQ = 0x200000
    AVX512PF = 0x400000
    AVX512ER = 0x800000
    AVX512CD = 0x1000000
    AVX512BW = 0x2000000
    AVX512VL = 0x4000000
    AVX512IFMA = 0x8000000
    AVX512VBMI = 0x10000000


def _bit(value: int, bit: int) -> bool:
    return bool((value & _MASK32) & (1 << bit))


_LEAF1_EDX = ((0, CPUFlag.FPU), (23, CPUFlag.MMX),
              (25, CPUFlag.SSE | CPUFlag.INTEGER_SSE), (26, CPUFlag.SSE2))
_LEAF1_ECX = ((0, CPUFlag.SSE3), (9, CPUFlag.SSSE3), (19, CPUFlag.SSE4_1),
              (20, CPUFlag.SSE4_2), (22, CPUFlag.MOVBE), (23, CPUFlag.POPCNT),
              (25, CPUFlag.AES), (29, CPUFlag.F16C))
_LEAF7_EBX_AVX512 = ((16, CPUFlag.AVX512F), (17, CPUFlag.AVX512DQ),
                     (21, CPUFlag.AVX512IFMA), (26, CPUFlag.AVX512PF),
                     (27, CPUFlag.AVX512ER), (28, CPUFlag.AVX512CD),
                     (30, CPUFlag.AVX512BW), (31, CPUFlag.AVX512VL))


def decode_cpu_flags(leaf1_ecx, leaf1_edx, leaf7_ebx, leaf7_ecx, xcr0,
                     max_extended_leaf, ext_ecx, ext_edx) -> CPUFlag:
    """Combine raw CPUID leaves and XCR0 into a set of CPUFlag values.

    ``max_extended_leaf`` is EAX of leaf 0x80000000; ``ext_ecx``/``ext_edx``
    are ECX/EDX of leaf 0x80000001 and are ignored when that leaf is absent.
    """
    result = CPUFlag.NONE
    for bit, flag in _LEAF1_EDX:
        if _bit(leaf1_edx, bit):
            result |= flag
    for bit, flag in _LEAF1_ECX:
        if _bit(leaf1_ecx, bit):
            result |= flag

    xgetbv_supported = _bit(leaf1_ecx, 27)
    avx_supported = _bit(leaf1_ecx, 28)
    if xgetbv_supported and avx_supported:
        xcr0 &= _MASK32
        if (xcr0 & 0x6) == 0x6:
            result |= CPUFlag.AVX
            if _bit(leaf1_ecx, 12):
                result |= CPUFlag.FMA3
            if _bit(leaf7_ebx, 5):
                result |= CPUFlag.AVX2
        if (xcr0 & (0x7 << 5)) and (xcr0 & (0x3 << 1)):
            for bit, flag in _LEAF7_EBX_AVX512:
                if _bit(leaf7_ebx, bit):
                    result |= flag
            if _bit(leaf7_ecx, 1):
                result |= CPUFlag.AVX512VBMI

    if (max_extended_leaf & _MASK32) >= 0x80000001:
        if _bit(ext_edx, 31):
            result |= CPUFlag.THREEDNOW
        if _bit(ext_edx, 30):
            result |= CPUFlag.THREEDNOW_EXT
        if _bit(ext_edx, 22):
            result |= CPUFlag.INTEGER_SSE
        if result & CPUFlag.AVX and _bit(ext_ecx, 16):
            result |= CPUFlag.FMA4

    return result