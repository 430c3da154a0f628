"""Residence card messages and results."""

from __future__ import annotations

from dataclasses import dataclass

from jpcard.core.base import Message, Result
from jpcard.core.residence.records import DocumentRecord
from jpcard.core.residence.signature import VerificationResult


@dataclass
class ReadResidenceCardMessage(Message):
    """Read every file of the card.

    The printed card number keys mutual authentication and is verified
    by the card before the images can be read.
    """

    card_number: str


@dataclass(frozen=True)
class ResidenceCardResult(Result):
    record: DocumentRecord
    verification: VerificationResult
