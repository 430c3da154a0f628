from __future__ import annotations

import logging

from jpcard.core.base import PLAIN_POLICY, Agent, ChunkedReader, ChunkPolicy, Terminal
from jpcard.core.base.terminal import handles
from jpcard.core.mynumber import tags
from jpcard.core.mynumber.messages import (
    BasicInfoResult,
    CertificateResult,
    MyNumberResult,
    PinStatusMessage,
    PinStatusResult,
    ReadBasicInfoMessage,
    ReadCertificateMessage,
    ReadMyNumberMessage,
)
from jpcard.core.mynumber.records import parse_basic_info, parse_certificate, parse_my_number
from jpcard.core.mynumber.tags import PROFILES, Credential, CredentialProfile
from jpcard.core.smartcard import Condition, check, classify

lg = logging.getLogger(__name__)


class MyNumberTerminal(Terminal):
    """Terminal for the Individual Number card.

    Every operation selects its application first, so operations can be
    sent in any order on one connection.
    """

    def __init__(self, agent: Agent, policy: ChunkPolicy = PLAIN_POLICY) -> None:
        super().__init__(agent)
        self._policy = policy

    def _verify(self, profile: CredentialProfile, pin: str) -> None:
        # Reject a malformed PIN before anything reaches the card.
        profile.pin_format.encode(pin)
        check(self._iso.send_select_aid(profile.aid))
        check(self._iso.send_select_fid(profile.pin_ef))
        check(self._iso.send_verify(pin, profile.pin_format))

    def _read_file(self, fid: int) -> bytes:
        check(self._iso.send_select_fid(fid))
        return ChunkedReader(self._agent.transmit, self._policy).read()

    @handles(ReadCertificateMessage)
    def _read_certificate(self, message: ReadCertificateMessage) -> CertificateResult:
        profile = PROFILES[message.credential]
        if profile.certificate_ef is None:
            raise ValueError(f"{message.credential.name} has no certificate")
        if message.pin is not None:
            self._verify(profile, message.pin)
        elif message.credential is Credential.DIGITAL_SIGNATURE:
            raise ValueError("the signature certificate needs the signature password")
        else:
            check(self._iso.send_select_aid(profile.aid))
        data = self._read_file(profile.certificate_ef)
        record = parse_certificate(data, message.credential)
        lg.info("read %s certificate, %d bytes", message.credential.value, len(record.raw))
        return CertificateResult(record=record)

    @handles(ReadBasicInfoMessage)
    def _read_basic_info(self, message: ReadBasicInfoMessage) -> BasicInfoResult:
        self._verify(PROFILES[Credential.CARD_INFO_INPUT], message.pin)
        record = parse_basic_info(self._read_file(tags.EF_BASIC_INFO))
        return BasicInfoResult(record=record)

    @handles(ReadMyNumberMessage)
    def _read_my_number(self, message: ReadMyNumberMessage) -> MyNumberResult:
        self._verify(PROFILES[Credential.CARD_INFO_INPUT], message.pin)
        number = parse_my_number(self._read_file(tags.EF_MY_NUMBER))
        return MyNumberResult(number=number)

    @handles(PinStatusMessage)
    def _pin_status(self, message: PinStatusMessage) -> PinStatusResult:
        profile = PROFILES[message.credential]
        check(self._iso.send_select_aid(profile.aid))
        check(self._iso.send_select_fid(profile.pin_ef))
        resp = self._iso.send_pin_status()
        outcome = classify(resp.sw1, resp.sw2)
        if outcome.condition is Condition.WRONG_CREDENTIAL:
            return PinStatusResult(message.credential, outcome.retries)
        if outcome.condition is Condition.CREDENTIAL_BLOCKED:
            return PinStatusResult(message.credential, 0, blocked=True)
        # 9000: already verified in this session, count not reported.
        check(resp)
        return PinStatusResult(message.credential, None)
