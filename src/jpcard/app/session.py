"""Card session orchestration.

Constructs the full stack (Card -> Agent -> Terminal), connects, runs
one operation and disconnects. Operations log their output; errors are
reported through Terminal.on_error.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from jpcard.app.display import (
    format_certificate,
    format_document,
    format_personal_info,
    format_verification,
)
from jpcard.core.base import (
    PLAIN_POLICY,
    SECURE_POLICY,
    Agent,
    ChunkPolicy,
    Terminal,
    Transport,
)
from jpcard.core.mynumber import (
    Credential,
    MyNumberTerminal,
    PinStatusMessage,
    ReadBasicInfoMessage,
    ReadCertificateMessage,
    ReadMyNumberMessage,
)
from jpcard.core.residence import ReadResidenceCardMessage, ResidenceCardTerminal

lg = logging.getLogger(__name__)

T = TypeVar("T", bound=Terminal)


# ---------------------------------------------------------------------------
# Unit operations (each takes a terminal)
# ---------------------------------------------------------------------------


def read_certificate(
    terminal: MyNumberTerminal,
    credential: Credential,
    pin: str | None = None,
    output: Path | None = None,
) -> None:
    result = terminal.send(ReadCertificateMessage(credential=credential, pin=pin))
    lg.info("--- Certificate ---\n%s", format_certificate(result.record))
    if output is not None:
        output.write_bytes(result.record.raw)
        lg.info("certificate written to %s", output)


def read_basic_info(terminal: MyNumberTerminal, pin: str) -> None:
    result = terminal.send(ReadBasicInfoMessage(pin=pin))
    lg.info("--- Basic information ---\n%s", format_personal_info(result.record))


def read_my_number(terminal: MyNumberTerminal, pin: str) -> None:
    result = terminal.send(ReadMyNumberMessage(pin=pin))
    lg.info("individual number: %s", result.number)


def pin_status(terminal: MyNumberTerminal, credential: Credential) -> None:
    result = terminal.send(PinStatusMessage(credential=credential))
    if result.blocked:
        lg.info("%s: blocked", credential.name)
    elif result.retries is None:
        lg.info("%s: verified", credential.name)
    else:
        lg.info("%s: %d attempts left", credential.name, result.retries)


def read_residence_card(
    terminal: ResidenceCardTerminal,
    card_number: str,
    image_dir: Path | None = None,
) -> None:
    result = terminal.send(ReadResidenceCardMessage(card_number=card_number))
    lg.info("--- Residence card ---\n%s", format_document(result.record))
    lg.info("--- Signature ---\n%s", format_verification(result.verification))
    if image_dir is not None:
        image_dir.mkdir(parents=True, exist_ok=True)
        (image_dir / "front.bin").write_bytes(result.record.front_image)
        (image_dir / "photo.bin").write_bytes(result.record.photo)
        lg.info("images written to %s", image_dir)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


def session(
    build: Callable[[Agent], T],
    operation: Callable[[T], None],
    reader: str | None = None,
    transport: Callable[[], Transport] | None = None,
) -> bool:
    """Run *operation* on a freshly connected terminal. Returns success.

    *transport* creates the card connection; a PC/SC Card by default.
    """
    if transport is None:
        from jpcard.core.smartcard.card import Card

        transport = Card
    agent = Agent(transport())
    terminal = build(agent)

    try:
        terminal.connect(reader)
        operation(terminal)
        return True
    except Exception as exc:
        terminal.on_error(exc)
        return False
    finally:
        terminal.disconnect()


def mynumber_session(
    operation: Callable[[MyNumberTerminal], None],
    reader: str | None = None,
    policy: ChunkPolicy = PLAIN_POLICY,
    transport: Callable[[], Transport] | None = None,
) -> bool:
    return session(
        lambda agent: MyNumberTerminal(agent, policy), operation, reader, transport,
    )


def residence_session(
    operation: Callable[[ResidenceCardTerminal], None],
    reader: str | None = None,
    policy: ChunkPolicy = PLAIN_POLICY,
    secure_policy: ChunkPolicy = SECURE_POLICY,
    transport: Callable[[], Transport] | None = None,
) -> bool:
    return session(
        lambda agent: ResidenceCardTerminal(agent, policy, secure_policy),
        operation,
        reader,
        transport,
    )
