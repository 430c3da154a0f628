"""ISO 9797-1 method 2 padding, used for both encryption and MACs."""

from __future__ import annotations


def pad80(data: bytes, block_size: int) -> bytes:
    """Append ``80`` and zero bytes up to the next *block_size* boundary."""
    return data + b"\x80" + b"\x00" * ((-len(data) - 1) % block_size)


def unpad80(data: bytes, block_size: int | None = None) -> bytes:
    """Strip method 2 padding. Raises ValueError if it is absent or invalid."""
    if block_size is not None and len(data) % block_size:
        raise ValueError("invalid padding")
    i = len(data) - 1
    while i >= 0 and data[i] == 0x00:
        i -= 1
    if i < 0 or data[i] != 0x80:
        raise ValueError("invalid padding")
    if block_size is not None and len(data) - i > block_size:
        raise ValueError("invalid padding")
    return data[:i]
