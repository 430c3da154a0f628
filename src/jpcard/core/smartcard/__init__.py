from jpcard.core.smartcard.errors import (
    CardError,
    CardReaderError,
    CredentialBlockedError,
    CredentialError,
    RecordError,
    SecureMessagingError,
    TLVError,
    TransportError,
)
from jpcard.core.smartcard.logging import PROTOCOL, TRACE
from jpcard.core.smartcard.status import Condition, Outcome, check, classify
from jpcard.core.smartcard.types import APDU, LE_EXTENDED_MAX, LE_MAX, Response

__all__ = [
    "APDU",
    "CardError",
    "CardReaderError",
    "Condition",
    "CredentialBlockedError",
    "CredentialError",
    "LE_EXTENDED_MAX",
    "LE_MAX",
    "Outcome",
    "PROTOCOL",
    "RecordError",
    "Response",
    "SecureMessagingError",
    "TLVError",
    "TRACE",
    "TransportError",
    "check",
    "classify",
]
