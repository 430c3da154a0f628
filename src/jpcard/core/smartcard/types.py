from __future__ import annotations

from dataclasses import dataclass

LE_MAX = 256
"""Largest short-form Le, encoded as ``00``."""

LE_EXTENDED_MAX = 65536
"""Largest extended-form Le, encoded as ``00 00``."""

_MAX_LC = 65535


@dataclass(frozen=True)
class APDU:
    """ISO 7816 command APDU.

    Short framing is used while data fits in 255 bytes and le in 256;
    anything larger switches to extended framing. Sizes that fit neither
    are rejected when the command is built.
    """

    cla: int
    ins: int
    p1: int
    p2: int
    data: bytes = b""
    le: int | None = None

    def __post_init__(self) -> None:
        for name in ("cla", "ins", "p1", "p2"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFF:
                raise ValueError(f"{name} out of range: {value}")
        if len(self.data) > _MAX_LC:
            raise ValueError(f"command data too long: {len(self.data)} bytes")
        if self.le is not None and not 1 <= self.le <= LE_EXTENDED_MAX:
            raise ValueError(f"le out of range: {self.le}")

    @property
    def extended(self) -> bool:
        return len(self.data) > 255 or (self.le is not None and self.le > LE_MAX)

    @property
    def header(self) -> bytes:
        return bytes([self.cla, self.ins, self.p1, self.p2])

    def to_bytes(self) -> bytes:
        buf = bytearray(self.header)
        if self.extended:
            if self.data:
                buf.append(0x00)
                buf.extend(len(self.data).to_bytes(2, "big"))
                buf.extend(self.data)
            elif self.le is not None:
                buf.append(0x00)
            if self.le is not None:
                le = 0x0000 if self.le == LE_EXTENDED_MAX else self.le
                buf.extend(le.to_bytes(2, "big"))
        else:
            if self.data:
                buf.append(len(self.data))
                buf.extend(self.data)
            if self.le is not None:
                buf.append(0x00 if self.le == LE_MAX else self.le)
        return bytes(buf)

    def __repr__(self) -> str:
        return self.to_bytes().hex(" ").upper()


@dataclass
class Response:
    """ISO 7816 response APDU."""

    data: bytes
    sw1: int
    sw2: int

    @property
    def sw(self) -> int:
        return (self.sw1 << 8) | self.sw2

    @property
    def success(self) -> bool:
        return self.sw1 == 0x90 and self.sw2 == 0x00

    def __repr__(self) -> str:
        sw = f"SW={self.sw:04X}"
        if self.data:
            return f"{self.data.hex(' ').upper()} {sw}"
        return sw
