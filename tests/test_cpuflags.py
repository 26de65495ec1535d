import pytest

from fft3d.cpuflags import CPUFlag, decode_cpu_flags

AVX_OS = 0x6
AVX512_OS = 0xE6
XSAVE_AVX = (1 << 27) | (1 << 28)


def decode(**kwargs):
    args = dict(leaf1_ecx=0, leaf1_edx=0, leaf7_ebx=0, leaf7_ecx=0, xcr0=0,
                max_extended_leaf=0, ext_ecx=0, ext_edx=0)
    args.update(kwargs)
    return decode_cpu_flags(**args)


def test_empty_registers_give_no_flags():
    assert decode() == CPUFlag.NONE


def test_documented_constants():
    assert decode(leaf1_edx=1 << 26) == 0x20
    assert decode(leaf1_ecx=1 << 19) == CPUFlag.SSE4
    flags = decode(leaf1_edx=1 << 26, max_extended_leaf=0x80000001, ext_edx=1 << 30)
    assert flags == CPUFlag.X86_64


@pytest.mark.parametrize("bit, flag", [
    (0, CPUFlag.FPU),
    (23, CPUFlag.MMX),
    (25, CPUFlag.SSE | CPUFlag.INTEGER_SSE),
    (26, CPUFlag.SSE2),
])
def test_leaf1_edx_bits(bit, flag):
    assert decode(leaf1_edx=1 << bit) == flag


@pytest.mark.parametrize("bit, flag", [
    (0, CPUFlag.SSE3),
    (9, CPUFlag.SSSE3),
    (19, CPUFlag.SSE4_1),
    (20, CPUFlag.SSE4_2),
    (22, CPUFlag.MOVBE),
    (23, CPUFlag.POPCNT),
    (25, CPUFlag.AES),
    (29, CPUFlag.F16C),
])
def test_leaf1_ecx_bits(bit, flag):
    assert decode(leaf1_ecx=1 << bit) == flag


def test_avx_requires_os_support():
    assert decode(leaf1_ecx=XSAVE_AVX, xcr0=0) == CPUFlag.NONE
    assert decode(leaf1_ecx=XSAVE_AVX, xcr0=AVX_OS) == CPUFlag.AVX


def test_avx_requires_xgetbv_bit():
    assert decode(leaf1_ecx=1 << 28, xcr0=AVX_OS) == CPUFlag.NONE


def test_fma3_and_avx2():
    flags = decode(leaf1_ecx=XSAVE_AVX | (1 << 12), leaf7_ebx=1 << 5, xcr0=AVX_OS)
    assert flags == CPUFlag.AVX | CPUFlag.FMA3 | CPUFlag.AVX2


def test_avx2_not_set_without_avx_os_state():
    flags = decode(leaf1_ecx=XSAVE_AVX, leaf7_ebx=1 << 5, xcr0=0)
    assert (flags & CPUFlag.AVX2) == CPUFlag.NONE


def test_avx512_family():
    ebx = sum(1 << b for b in (16, 17, 21, 26, 27, 28, 30, 31))
    flags = decode(leaf1_ecx=XSAVE_AVX, leaf7_ebx=ebx, leaf7_ecx=1 << 1, xcr0=AVX512_OS)
    for flag in (CPUFlag.AVX512F, CPUFlag.AVX512DQ, CPUFlag.AVX512IFMA,
                 CPUFlag.AVX512PF, CPUFlag.AVX512ER, CPUFlag.AVX512CD,
                 CPUFlag.AVX512BW, CPUFlag.AVX512VL, CPUFlag.AVX512VBMI):
        assert (flags & flag) == flag


def test_avx512_needs_opmask_state():
    flags = decode(leaf1_ecx=XSAVE_AVX, leaf7_ebx=1 << 16, xcr0=AVX_OS)
    assert (flags & CPUFlag.AVX512F) == CPUFlag.NONE


def test_negative_register_values_are_treated_as_unsigned():
    flags = decode(leaf1_ecx=XSAVE_AVX, leaf7_ebx=-(1 << 31), xcr0=AVX512_OS)
    assert (flags & CPUFlag.AVX512VL) == CPUFlag.AVX512VL


def test_extended_leaf_ignored_when_absent():
    assert decode(max_extended_leaf=0x80000000, ext_edx=1 << 31) == CPUFlag.NONE


def test_extended_leaf_bits():
    flags = decode(max_extended_leaf=0x80000001,
                   ext_edx=(1 << 31) | (1 << 30) | (1 << 22))
    assert flags == CPUFlag.THREEDNOW | CPUFlag.THREEDNOW_EXT | CPUFlag.INTEGER_SSE


def test_fma4_only_with_avx():
    assert decode(max_extended_leaf=0x80000001, ext_ecx=1 << 16) == CPUFlag.NONE
    flags = decode(leaf1_ecx=XSAVE_AVX, xcr0=AVX_OS,
                   max_extended_leaf=0x80000008, ext_ecx=1 << 16)
    assert (flags & CPUFlag.FMA4) == CPUFlag.FMA4