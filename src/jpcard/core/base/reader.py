"""Chunked READ BINARY of a file holding one BER-TLV record.

The record's total size is unknown until its tag and length header have
arrived, so the first read asks for a small chunk and later reads ask
for exactly what is still missing, bounded by the chunk policy.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass

from jpcard.core.base.iso7816 import ISO7816
from jpcard.core.smartcard import (
    APDU,
    LE_EXTENDED_MAX,
    Condition,
    RecordError,
    Response,
    check,
    classify,
)
from jpcard.core.smartcard import tlv

lg = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChunkPolicy:
    """Requested sizes for the first read and every read after it."""

    initial: int = 0x40
    maximum: int = 0x100

    def __post_init__(self) -> None:
        if not 1 <= self.maximum <= LE_EXTENDED_MAX:
            raise ValueError(f"maximum chunk out of range: {self.maximum}")
        if not 1 <= self.initial <= self.maximum:
            raise ValueError("initial chunk must be between 1 and the maximum chunk")


MAX_FILE_SIZE = 0x8000

PLAIN_POLICY = ChunkPolicy(initial=0x40, maximum=0x100)
SECURE_POLICY = ChunkPolicy(initial=0x40, maximum=1694)


class ReadState(enum.Enum):
    START = "start"
    ACCUMULATING = "accumulating"
    COMPLETE = "complete"
    FAILED = "failed"


class AssemblyBuffer:
    """Bytes of one record collected across chunks.

    The target size is derived from the TLV header once, and the buffer
    never grows past it; surplus bytes of the last chunk are dropped.
    """

    def __init__(self, policy: ChunkPolicy) -> None:
        self.policy = policy
        self._data = bytearray()
        self._target: int | None = None

    @property
    def target(self) -> int | None:
        return self._target

    @property
    def received(self) -> int:
        return len(self._data)

    @property
    def complete(self) -> bool:
        return self._target is not None and len(self._data) >= self._target

    def append(self, chunk: bytes) -> None:
        self._data.extend(chunk)
        if self._target is None:
            self._target = tlv.header_length(bytes(self._data))
            if self._target is not None:
                lg.debug("record size %d bytes", self._target)
        if self._target is not None and len(self._data) > self._target:
            del self._data[self._target :]

    def next_request(self) -> int:
        if self._target is None:
            return self.policy.maximum
        return min(self.policy.maximum, self._target - len(self._data))

    def finish(self) -> bytes:
        if not self.complete:
            raise RecordError("record truncated")
        return bytes(self._data)


class ChunkedReader:
    """Read one TLV record from the current file, or from an SFI.

    With ``secure=True`` every read is built as a protected READ BINARY;
    the agent's secure channel must be open. The state machine is the
    same either way.
    """

    def __init__(
        self,
        transmit: Callable[[APDU], Response],
        policy: ChunkPolicy = PLAIN_POLICY,
        *,
        secure: bool = False,
    ) -> None:
        self._iso = ISO7816(transmit)
        self._policy = policy
        self._secure = secure
        self._state = ReadState.START

    @property
    def state(self) -> ReadState:
        return self._state

    def _read(self, offset: int, length: int, sfi: int | None) -> Response:
        if self._secure:
            return self._iso.send_read_binary_protected(offset, length, sfi=sfi)
        return self._iso.send_read_binary(offset, length, sfi=sfi)

    def read(self, *, sfi: int | None = None) -> bytes:
        """Return the complete record. Partial data is never returned."""
        self._state = ReadState.START
        buffer = AssemblyBuffer(self._policy)
        length = self._policy.initial
        first = True
        try:
            while True:
                # SFI addressing selects the file; later reads use offsets.
                resp = self._read(buffer.received, length, sfi if first else None)
                first = False
                outcome = classify(resp.sw1, resp.sw2)
                end_of_file = outcome.condition is Condition.END_OF_FILE
                if not end_of_file:
                    check(resp)
                self._state = ReadState.ACCUMULATING
                if not resp.data:
                    raise RecordError("record truncated")
                buffer.append(resp.data)
                if buffer.complete:
                    break
                if end_of_file or len(resp.data) < length:
                    raise RecordError("record truncated")
                length = buffer.next_request()
        except Exception:
            self._state = ReadState.FAILED
            raise
        self._state = ReadState.COMPLETE
        return buffer.finish()

    def read_to_end(self, *, sfi: int | None = None, limit: int = MAX_FILE_SIZE) -> bytes:
        """Return the whole file, for files holding several TLV elements.

        Reads maximum-size chunks until the card reports the end of the
        file: a short read, ``6282``, or ``6B00`` at an offset just past
        the end.
        """
        self._state = ReadState.START
        data = bytearray()
        first = True
        try:
            while len(data) < limit:
                length = min(self._policy.maximum, limit - len(data))
                resp = self._read(len(data), length, sfi if first else None)
                first = False
                condition = classify(resp.sw1, resp.sw2).condition
                if data and condition is Condition.WRONG_PARAMETERS:
                    break
                if condition is not Condition.END_OF_FILE:
                    check(resp)
                self._state = ReadState.ACCUMULATING
                data.extend(resp.data)
                if condition is Condition.END_OF_FILE or len(resp.data) < length:
                    break
            else:
                raise RecordError(f"file larger than {limit} bytes")
            if not data:
                raise RecordError("empty file")
        except Exception:
            self._state = ReadState.FAILED
            raise
        self._state = ReadState.COMPLETE
        return bytes(data)
