"""Exception taxonomy for card reading.

Every layer raises one of these and lets it propagate; nothing in the
core logs an error and carries on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jpcard.core.smartcard.status import Outcome


class CardReaderError(Exception):
    """Base class for all errors raised while reading a card."""


class TransportError(CardReaderError):
    """The channel to the card failed (tag lost, timeout, cancelled)."""


class CardError(CardReaderError):
    """The card answered with a non-success status word."""

    def __init__(self, sw1: int, sw2: int, outcome: Outcome | None = None) -> None:
        self.sw1 = sw1
        self.sw2 = sw2
        self.outcome = outcome
        condition = outcome.condition.name if outcome is not None else "CARD_REJECTED"
        super().__init__(f"card returned {sw1:02X}{sw2:02X} ({condition})")

    @property
    def sw(self) -> int:
        return (self.sw1 << 8) | self.sw2


class CredentialError(CardError):
    """Wrong PIN; the card still accepts ``retries`` more attempts."""

    def __init__(self, sw1: int, sw2: int, outcome: Outcome | None = None) -> None:
        super().__init__(sw1, sw2, outcome)
        self.retries = outcome.retries if outcome is not None else None


class CredentialBlockedError(CardError):
    """The credential is blocked and can no longer be verified."""


class SecureMessagingError(CardReaderError):
    """Secure messaging failed; the session that raised it is unusable."""


class TLVError(CardReaderError, ValueError):
    """BER-TLV data could not be decoded."""


class RecordError(CardReaderError):
    """A file could not be assembled or mapped to a record."""
