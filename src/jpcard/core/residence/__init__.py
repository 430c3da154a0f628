from jpcard.core.residence.messages import ReadResidenceCardMessage, ResidenceCardResult
from jpcard.core.residence.records import DocumentRecord
from jpcard.core.residence.signature import VerificationError, VerificationResult
from jpcard.core.residence.tags import CardType
from jpcard.core.residence.terminal import ResidenceCardTerminal

__all__ = [
    "CardType",
    "DocumentRecord",
    "ReadResidenceCardMessage",
    "ResidenceCardResult",
    "ResidenceCardTerminal",
    "VerificationError",
    "VerificationResult",
]
