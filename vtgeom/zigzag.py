"""
ZigZag encoding of signed deltas into unsigned 32-bit wire values.

Parameters travel in 32-bit fields, so ``zig`` truncates: only values in
``[ZIG_MIN, ZIG_MAX]`` survive ``unzig(zig(n)) == n``. Anything outside wraps
silently here; the command encoder checks ``in_range`` and rejects such deltas.
"""

UINT32_MASK = 0xFFFFFFFF
ZIG_MIN = -(2**31)
ZIG_MAX = 2**31 - 1


def zig(n):
    """Z-encode a signed (64-bit) int, keeping the low 32 bits."""
    return ((n << 1) ^ (n >> 63)) & UINT32_MASK


def unzig(u):
    """Decode a Z-encoded 32-bit word into a signed int."""
    u &= UINT32_MASK
    return (u >> 1) ^ -(u & 1)


def in_range(n):
    return ZIG_MIN <= n <= ZIG_MAX
