"""ISO 7816-4 commands.

``build_*`` functions turn a semantic request into an APDU and never do
I/O. The ISO7816 protocol class sends them through a transmit callable
and logs one line per command.
"""

from __future__ import annotations

import logging
import string
from collections.abc import Callable
from dataclasses import dataclass, replace

from jpcard.core.sm.session import CLA_SM_PLAIN_DATA, le_object
from jpcard.core.smartcard import APDU, LE_EXTENDED_MAX, LE_MAX, Response
from jpcard.core.smartcard.logging import PROTOCOL, color_sw

lg = logging.getLogger(__name__)

INS_SELECT = 0xA4
INS_VERIFY = 0x20
INS_GET_CHALLENGE = 0x84
INS_MUTUAL_AUTHENTICATE = 0x82
INS_READ_BINARY = 0xB0
INS_GET_RESPONSE = 0xC0

MF = b"\x3F\x00"

P2_VERIFY_LOCAL = 0x80
P2_VERIFY_CARD_NUMBER = 0x86

MAX_OFFSET = 0x7FFF
MAX_SFI_OFFSET = 0xFF


@dataclass(frozen=True)
class PinFormat:
    """Allowed length and alphabet of a credential's PIN."""

    name: str
    min_length: int
    max_length: int
    alphabet: str = string.digits

    def encode(self, pin: str) -> bytes:
        """Return the PIN as VERIFY data, or raise ValueError."""
        if not self.min_length <= len(pin) <= self.max_length:
            if self.min_length == self.max_length:
                expected = f"{self.min_length}"
            else:
                expected = f"{self.min_length}-{self.max_length}"
            raise ValueError(f"{self.name} must be {expected} characters, got {len(pin)}")
        if any(c not in self.alphabet for c in pin):
            raise ValueError(f"{self.name} contains invalid characters")
        return pin.encode("ascii")


NUMERIC_PIN = PinFormat("PIN", 4, 4)
SIGNATURE_PASSWORD = PinFormat(
    "signature password", 6, 16, string.ascii_uppercase + string.digits,
)


# -- builders -----------------------------------------------------------------


def build_select_mf() -> APDU:
    return APDU(cla=0x00, ins=INS_SELECT, p1=0x00, p2=0x00, data=MF)


def build_select_fid(fid: int) -> APDU:
    """SELECT an elementary file by its 2-byte identifier."""
    if not 0 <= fid <= 0xFFFF:
        raise ValueError(f"file identifier out of range: {fid:X}")
    return APDU(cla=0x00, ins=INS_SELECT, p1=0x02, p2=0x0C, data=fid.to_bytes(2, "big"))


def build_select_aid(aid: bytes) -> APDU:
    """SELECT a dedicated file by application identifier, no FCI returned."""
    if not 5 <= len(aid) <= 16:
        raise ValueError(f"AID must be 5-16 bytes, got {len(aid)}")
    return APDU(cla=0x00, ins=INS_SELECT, p1=0x04, p2=0x0C, data=aid)


def build_verify(pin: str, pin_format: PinFormat) -> APDU:
    return APDU(
        cla=0x00, ins=INS_VERIFY, p1=0x00, p2=P2_VERIFY_LOCAL,
        data=pin_format.encode(pin),
    )


def build_pin_status() -> APDU:
    """VERIFY without data: reports remaining attempts as 63Cx."""
    return APDU(cla=0x00, ins=INS_VERIFY, p1=0x00, p2=P2_VERIFY_LOCAL)


def build_verify_card_number(card_number: str) -> APDU:
    """VERIFY the printed card number; only meaningful under SM."""
    return APDU(
        cla=0x00, ins=INS_VERIFY, p1=0x00, p2=P2_VERIFY_CARD_NUMBER,
        data=card_number.encode("ascii"),
    )


def build_get_challenge(length: int = 8) -> APDU:
    return APDU(cla=0x00, ins=INS_GET_CHALLENGE, p1=0x00, p2=0x00, le=length)


def build_mutual_authenticate(data: bytes, le: int) -> APDU:
    return APDU(cla=0x00, ins=INS_MUTUAL_AUTHENTICATE, p1=0x00, p2=0x00, data=data, le=le)


def build_get_response(length: int) -> APDU:
    return APDU(cla=0x00, ins=INS_GET_RESPONSE, p1=0x00, p2=0x00, le=length)


def _offset_params(offset: int, sfi: int | None) -> tuple[int, int]:
    if sfi is not None:
        if not 1 <= sfi <= 0x1E:
            raise ValueError(f"SFI out of range: {sfi:X}")
        if not 0 <= offset <= MAX_SFI_OFFSET:
            raise ValueError(f"offset {offset:X} too large for SFI addressing")
        return 0x80 | sfi, offset
    if not 0 <= offset <= MAX_OFFSET:
        raise ValueError(f"offset out of range: {offset:X}")
    return (offset >> 8) & 0x7F, offset & 0xFF


def build_read_binary(offset: int, length: int, *, sfi: int | None = None) -> APDU:
    """READ BINARY at a 15-bit offset, or at a short offset of an SFI."""
    p1, p2 = _offset_params(offset, sfi)
    return APDU(cla=0x00, ins=INS_READ_BINARY, p1=p1, p2=p2, le=length)


def build_read_binary_protected(
    offset: int, length: int, *, sfi: int | None = None,
) -> APDU:
    """READ BINARY whose expected length travels as a ``96`` data object.

    The session MACs the object together with the header, so offset and
    length are both integrity-protected.
    """
    p1, p2 = _offset_params(offset, sfi)
    if not 1 <= length <= LE_EXTENDED_MAX:
        raise ValueError(f"length out of range: {length}")
    return APDU(
        cla=CLA_SM_PLAIN_DATA, ins=INS_READ_BINARY, p1=p1, p2=p2,
        data=le_object(length), le=LE_EXTENDED_MAX,
    )


# -- protocol -----------------------------------------------------------------


class ISO7816:
    """ISO 7816-4 protocol operations."""

    def __init__(self, transmit: Callable[[APDU], Response]) -> None:
        self._transmit = transmit

    def _send(self, label: str, apdu: APDU) -> Response:
        """Transmit *apdu*, resolving 6Cxx and 61xx.

        6Cxx repeats the command once with the Le the card asked for.
        61xx is followed by GET RESPONSE until the card stops reporting
        remaining bytes; the data of all parts is concatenated.
        """
        resp = self._transmit(apdu)
        lg.log(PROTOCOL, "%s %s", label, color_sw(resp.sw1, resp.sw2))
        if resp.sw1 == 0x6C and apdu.le is not None:
            apdu = replace(apdu, le=resp.sw2 or LE_MAX)
            resp = self._transmit(apdu)
            lg.log(PROTOCOL, "%s le=%X %s", label, apdu.le, color_sw(resp.sw1, resp.sw2))
        if resp.sw1 == 0x61:
            data = resp.data
            while resp.sw1 == 0x61:
                resp = self._transmit(build_get_response(resp.sw2 or LE_MAX))
                lg.log(PROTOCOL, "GET RESPONSE %s", color_sw(resp.sw1, resp.sw2))
                data += resp.data
            resp = Response(data, resp.sw1, resp.sw2)
        return resp

    def send_select_mf(self) -> Response:
        return self._send("SELECT MF", build_select_mf())

    def send_select_fid(self, fid: int) -> Response:
        return self._send(f"SELECT EF {fid:04X}", build_select_fid(fid))

    def send_select_aid(self, aid: bytes) -> Response:
        return self._send(f"SELECT AID {aid.hex().upper()}", build_select_aid(aid))

    def send_verify(self, pin: str, pin_format: PinFormat) -> Response:
        return self._send(f"VERIFY {pin_format.name}", build_verify(pin, pin_format))

    def send_pin_status(self) -> Response:
        return self._send("VERIFY (status)", build_pin_status())

    def send_verify_card_number(self, card_number: str) -> Response:
        return self._send("VERIFY card number", build_verify_card_number(card_number))

    def send_get_challenge(self, length: int = 8) -> Response:
        return self._send("GET CHALLENGE", build_get_challenge(length))

    def send_mutual_authenticate(self, data: bytes, le: int) -> Response:
        return self._send("MUTUAL AUTHENTICATE", build_mutual_authenticate(data, le))

    def send_read_binary(
        self, offset: int, length: int, *, sfi: int | None = None,
    ) -> Response:
        apdu = build_read_binary(offset, length, sfi=sfi)
        return self._send(_read_label("READ BINARY", offset, length, sfi), apdu)

    def send_read_binary_protected(
        self, offset: int, length: int, *, sfi: int | None = None,
    ) -> Response:
        apdu = build_read_binary_protected(offset, length, sfi=sfi)
        return self._send(_read_label("READ BINARY (SM)", offset, length, sfi), apdu)


def _read_label(name: str, offset: int, length: int, sfi: int | None) -> str:
    if sfi is not None:
        return f"{name} SFI={sfi:02X} offset={offset:02X} le={length:X}"
    return f"{name} offset={offset:04X} le={length:X}"
