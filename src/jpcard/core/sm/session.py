"""Secure messaging session (ISO 7816-4 SM with encryption and MAC).

A session is created by key establishment and installed on the agent as
its secure channel: every command goes through protect() and every
response through unprotect(). Exchanges are numbered by the send
counter, which moves once per command/response pair. Protected commands
carry:

  86 L 01 <cryptogram>     command data, padded and encrypted
  96 L <le>                expected length
  8E 08 <mac>              MAC over counter || pad(header) || objects

Protected responses carry ``86`` (optional), ``99 02 <SW>`` and ``8E``.
The CBC IV of an exchange is the counter block encrypted under the
encryption key.
"""

from __future__ import annotations

import logging
import time

from cryptography.hazmat.primitives.constant_time import bytes_eq

from jpcard.core.sm.crypto import MAC_LENGTH, CipherSuite
from jpcard.core.sm.padding import pad80, unpad80
from jpcard.core.smartcard import tlv
from jpcard.core.smartcard.errors import SecureMessagingError, TLVError
from jpcard.core.smartcard.logging import TRACE
from jpcard.core.smartcard.types import APDU, LE_EXTENDED_MAX, LE_MAX, Response

lg = logging.getLogger(__name__)

TAG_CRYPTOGRAM = 0x86
TAG_LE = 0x96
TAG_STATUS = 0x99
TAG_MAC = 0x8E

PADDING_INDICATOR = 0x01

CLA_SM = 0x0C
"""CLA bits for secure messaging with an authenticated header."""

CLA_SM_PLAIN_DATA = 0x08
"""CLA bit a command sets when its data already holds SM objects."""

# 86 header + indicator + one padding block + 99 04 + 8E 0A
_RESPONSE_OVERHEAD = 4 + 1 + 16 + 4 + 10


def le_object(le: int) -> bytes:
    """Encode an expected length as a ``96`` data object."""
    if le == LE_EXTENDED_MAX:
        return tlv.encode(TAG_LE, b"\x00\x00")
    if le == LE_MAX:
        return tlv.encode(TAG_LE, b"\x00")
    if le < LE_MAX:
        return tlv.encode(TAG_LE, bytes([le]))
    return tlv.encode(TAG_LE, le.to_bytes(2, "big"))


class SMSession:
    """Secure messaging context for one card presentation.

    Not reusable: once closed, or after any failure, every call raises
    and a new session needs fresh key establishment.
    """

    def __init__(
        self,
        suite: CipherSuite,
        enc_key: bytes,
        mac_key: bytes,
        counter: int = 0,
    ) -> None:
        for key in (enc_key, mac_key):
            if len(key) not in suite.key_lengths:
                raise ValueError(f"{suite.name} key must be {suite.key_lengths} bytes")
        self._suite = suite
        self._enc_key = enc_key
        self._mac_key = mac_key
        self._counter = counter
        self._pending: int | None = None
        self._closed = False
        self.started_at = time.monotonic()

    @property
    def suite(self) -> CipherSuite:
        return self._suite

    @property
    def counter(self) -> int:
        return self._counter

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Destroy the key material."""
        self._enc_key = b""
        self._mac_key = b""
        self._pending = None
        self._closed = True

    # -- helpers --

    def _fail(self, message: str) -> SecureMessagingError:
        self.close()
        return SecureMessagingError(message)

    def _require_open(self) -> None:
        if self._closed:
            raise SecureMessagingError("session closed")

    def _counter_block(self, counter: int) -> bytes:
        return counter.to_bytes(self._suite.block_size, "big")

    def _iv(self, counter: int) -> bytes:
        return self._suite.ecb(self._enc_key, self._counter_block(counter))

    def _mac(self, counter: int, data: bytes) -> bytes:
        mac_input = pad80(self._counter_block(counter) + data, self._suite.block_size)
        return self._suite.mac(self._mac_key, mac_input)[:MAC_LENGTH]

    # -- command side --

    def protect(self, apdu: APDU) -> APDU:
        """Encrypt and MAC an outgoing command."""
        self._require_open()
        if self._pending is not None:
            raise self._fail("counter desynchronized")
        self._counter += 1
        counter = self._counter
        bs = self._suite.block_size

        if apdu.cla & CLA_SM_PLAIN_DATA:
            # READ BINARY under SM already embeds its length object.
            objects = apdu.data
            le = apdu.le
        else:
            objects = b""
            if apdu.data:
                cryptogram = self._suite.encrypt(
                    self._enc_key, self._iv(counter), pad80(apdu.data, bs),
                )
                objects += tlv.encode(
                    TAG_CRYPTOGRAM, bytes([PADDING_INDICATOR]) + cryptogram,
                )
            le = None
            if apdu.le is not None:
                objects += le_object(apdu.le)
                le = LE_MAX if apdu.le + _RESPONSE_OVERHEAD <= LE_MAX else LE_EXTENDED_MAX

        header = bytes([apdu.cla | CLA_SM, apdu.ins, apdu.p1, apdu.p2])
        mac = self._mac(counter, pad80(header, bs) + objects)
        self._pending = counter
        lg.log(TRACE, "SM protect #%d %s", counter, header.hex().upper())
        return APDU(
            cla=header[0],
            ins=apdu.ins,
            p1=apdu.p1,
            p2=apdu.p2,
            data=objects + tlv.encode(TAG_MAC, mac),
            le=le,
        )

    # -- response side --

    def unprotect(self, response: Response) -> Response:
        """Verify and decrypt a response to the last protected command."""
        self._require_open()
        if self._pending is None:
            raise self._fail("counter desynchronized")
        counter = self._pending
        self._pending = None

        if not response.data:
            if response.success:
                raise self._fail("integrity check failed")
            # The card rejected the command before applying SM.
            return response

        cryptogram: bytes | None = None
        status: bytes | None = None
        mac: bytes | None = None
        mac_offset = 0
        offset = 0
        data = response.data
        try:
            while offset < len(data):
                if mac is not None:
                    raise TLVError("data after MAC")
                start = offset
                node, offset = tlv.decode_element(data, offset)
                if node.tag == TAG_CRYPTOGRAM and cryptogram is None:
                    cryptogram = node.value
                elif node.tag == TAG_STATUS and status is None:
                    status = node.value
                elif node.tag == TAG_MAC:
                    mac = node.value
                    mac_offset = start
                else:
                    raise TLVError(f"unexpected tag {node.tag:02X}")
        except TLVError as exc:
            lg.debug("SM response structure: %s", exc)
            raise self._fail("integrity check failed") from exc

        if mac is None or len(mac) != MAC_LENGTH:
            raise self._fail("integrity check failed")
        if not bytes_eq(self._mac(counter, data[:mac_offset]), mac):
            raise self._fail("integrity check failed")
        if status is None or len(status) != 2 or status != bytes([response.sw1, response.sw2]):
            raise self._fail("integrity check failed")

        plain = b""
        if cryptogram is not None:
            plain = self._decrypt(counter, cryptogram)
        return Response(data=plain, sw1=status[0], sw2=status[1])

    def _decrypt(self, counter: int, value: bytes) -> bytes:
        bs = self._suite.block_size
        if not value or value[0] != PADDING_INDICATOR:
            raise self._fail("decrypt/padding invalid")
        body = value[1:]
        if not body or len(body) % bs:
            raise self._fail("decrypt/padding invalid")
        padded = self._suite.decrypt(self._enc_key, self._iv(counter), body)
        try:
            return unpad80(padded, bs)
        except ValueError as exc:
            raise self._fail("decrypt/padding invalid") from exc

    # SecureChannel interface used by Agent.transmit
    wrap = protect
    unwrap = unprotect

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"counter={self._counter}"
        return f"SMSession({self._suite.name}, {state})"
