"""Strict BER-TLV codec.

Lengths are decoded exactly: a value shorter than its declared length is
an error, never clamped. Tags are kept as plain integers (``0x30``,
``0xDF22``, ``0xFF20``).
"""

from __future__ import annotations

from dataclasses import dataclass

from jpcard.core.smartcard.errors import TLVError

_MAX_LENGTH_BYTES = 4


@dataclass(frozen=True)
class TLV:
    """A single BER-TLV node."""

    tag: int
    value: bytes = b""
    children: tuple[TLV, ...] = ()

    @property
    def length(self) -> int:
        return len(self.value)

    @property
    def tag_bytes(self) -> bytes:
        return encode_tag(self.tag)

    @property
    def constructed(self) -> bool:
        """Whether this TLV has a constructed (non-primitive) tag."""
        return bool(self.tag_bytes[0] & 0x20)

    @property
    def header_size(self) -> int:
        return len(self.tag_bytes) + len(encode_length(self.length))

    @property
    def encoded_size(self) -> int:
        return self.header_size + self.length

    def encode(self) -> bytes:
        return encode(self.tag, self.value)

    def find(self, tag: int) -> TLV | None:
        """Find the first child with the given tag (non-recursive)."""
        for child in self.children:
            if child.tag == tag:
                return child
        return None

    def find_recursive(self, tag: int) -> TLV | None:
        """Find the first descendant with the given tag (depth-first)."""
        for child in self.children:
            if child.tag == tag:
                return child
            result = child.find_recursive(tag)
            if result is not None:
                return result
        return None

    def format(self, tag_names: dict[int, str] | None = None, indent: int = 0) -> str:
        """Format this TLV node as a human-readable tree."""
        names = tag_names or {}
        tag_hex = self.tag_bytes.hex().upper()
        label = f"{tag_hex} {names.get(self.tag, '')}".rstrip()
        prefix = "  " * indent
        if self.children:
            lines = [f"{prefix}{label}"]
            for child in self.children:
                lines.append(child.format(names, indent + 1))
            return "\n".join(lines)
        return f"{prefix}{label}: {self.value.hex(' ').upper()}".rstrip()

    def __repr__(self) -> str:
        tag_hex = self.tag_bytes.hex().upper()
        if self.children:
            kids = ", ".join(repr(c) for c in self.children)
            return f"TLV({tag_hex}, [{kids}])"
        return f"TLV({tag_hex}, {self.value.hex().upper()})"


# -- tags ---------------------------------------------------------------------


def decode_tag(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Read a tag at *offset*. Returns (tag, tag byte count).

    A first byte with all low five bits set is followed by exactly one
    more tag byte.
    """
    if offset >= len(data):
        raise TLVError("truncated")
    size = _tag_size(data[offset])
    if offset + size > len(data):
        raise TLVError("truncated")
    return int.from_bytes(data[offset : offset + size], "big"), size


def _tag_size(first: int) -> int:
    return 2 if (first & 0x1F) == 0x1F else 1


def encode_tag(tag: int) -> bytes:
    if not 0 <= tag <= 0xFFFF:
        raise ValueError(f"invalid tag: {tag}")
    return tag.to_bytes(max(1, (tag.bit_length() + 7) // 8), "big")


# -- lengths ------------------------------------------------------------------


def decode_length(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Read a length field at *offset*. Returns (length, header byte count).

    Short form is one byte up to 0x7F. Long form is ``8n`` followed by n
    big-endian bytes. The indefinite form (``80``) is not valid here.
    """
    if offset >= len(data):
        raise TLVError("malformed length")
    first = data[offset]
    if first < 0x80:
        return first, 1
    count = first & 0x7F
    if count == 0 or count > _MAX_LENGTH_BYTES:
        raise TLVError("malformed length")
    if offset + 1 + count > len(data):
        raise TLVError("malformed length")
    length = int.from_bytes(data[offset + 1 : offset + 1 + count], "big")
    return length, 1 + count


def encode_length(length: int) -> bytes:
    """Encode a length in its minimal BER form."""
    if length < 0:
        raise ValueError(f"invalid length: {length}")
    if length < 0x80:
        return bytes([length])
    count = (length.bit_length() + 7) // 8
    if count > _MAX_LENGTH_BYTES:
        raise ValueError(f"length too large: {length}")
    return bytes([0x80 | count]) + length.to_bytes(count, "big")


# -- elements -----------------------------------------------------------------


def encode(tag: int, value: bytes) -> bytes:
    return encode_tag(tag) + encode_length(len(value)) + value


def decode_element(
    data: bytes, offset: int = 0, *, nested: bool = True,
) -> tuple[TLV, int]:
    """Decode one element at *offset*. Returns (element, offset after it).

    Constructed values are decoded into children unless *nested* is
    false, for templates whose value is not itself TLV (``FF10`` holds
    plain text, a certificate is left to the X.509 parser).
    """
    tag, tag_size = decode_tag(data, offset)
    offset += tag_size
    length, length_size = decode_length(data, offset)
    offset += length_size
    end = offset + length
    if end > len(data):
        raise TLVError("truncated")
    value = bytes(data[offset:end])
    node = TLV(tag=tag, value=value)
    if nested and node.constructed:
        node = TLV(tag=tag, value=value, children=tuple(parse(value)))
    return node, end


def parse(data: bytes) -> list[TLV]:
    """Decode a sequence of elements.

    ``00`` bytes between elements and a trailing run of ``FF`` (erased
    file area) are skipped.
    """
    nodes: list[TLV] = []
    offset = 0
    while offset < len(data):
        if data[offset] == 0x00:
            offset += 1
            continue
        if data[offset] == 0xFF and all(b == 0xFF for b in data[offset:]):
            break
        node, offset = decode_element(data, offset)
        nodes.append(node)
    return nodes


def header_length(data: bytes) -> int | None:
    """Total encoded size of the first element in *data*.

    Returns None while the tag and length header are still incomplete.
    Raises TLVError if the header that is present is malformed.
    """
    if not data:
        return None
    offset = _tag_size(data[0])
    if offset >= len(data):
        return None
    first = data[offset]
    if first > 0x80 and (first & 0x7F) <= _MAX_LENGTH_BYTES:
        if offset + 1 + (first & 0x7F) > len(data):
            return None
    length, length_size = decode_length(data, offset)
    return offset + length_size + length
