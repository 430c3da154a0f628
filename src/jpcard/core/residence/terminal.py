from __future__ import annotations

import logging

from jpcard.core.base import (
    PLAIN_POLICY,
    SECURE_POLICY,
    Agent,
    ChunkedReader,
    ChunkPolicy,
    Terminal,
)
from jpcard.core.base.terminal import handles
from jpcard.core.residence import tags
from jpcard.core.residence.messages import ReadResidenceCardMessage, ResidenceCardResult
from jpcard.core.residence.records import (
    ResidenceCardFiles,
    parse_card_type,
    parse_residence_card,
)
from jpcard.core.residence.signature import verify_check_code
from jpcard.core.sm import bac
from jpcard.core.smartcard import check

lg = logging.getLogger(__name__)


class ResidenceCardTerminal(Terminal):
    """Terminal for residence cards and special permanent resident certificates."""

    def __init__(
        self,
        agent: Agent,
        policy: ChunkPolicy = PLAIN_POLICY,
        secure_policy: ChunkPolicy = SECURE_POLICY,
    ) -> None:
        super().__init__(agent)
        self._plain = ChunkedReader(agent.transmit, policy)
        self._secure = ChunkedReader(agent.transmit, secure_policy, secure=True)

    def _select_df(self, aid: bytes) -> None:
        check(self._iso.send_select_aid(aid))

    @handles(ReadResidenceCardMessage)
    def _read_card(self, message: ReadResidenceCardMessage) -> ResidenceCardResult:
        card_number = bac.normalize_card_number(message.card_number)

        check(self._iso.send_select_mf())
        common_data = self._plain.read_to_end(sfi=tags.SFI_COMMON_DATA)
        card_type_data = self._plain.read_to_end(sfi=tags.SFI_CARD_TYPE)
        card_type = parse_card_type(card_type_data)
        lg.info("card type %s", getattr(card_type, "name", card_type))

        session = bac.authenticate(self._iso, card_number)
        with self._agent.secure_channel(session):
            check(self._iso.send_verify_card_number(card_number))
            self._select_df(tags.DF1_AID)
            front_image = self._secure.read(sfi=tags.SFI_FRONT_IMAGE)
            photo = self._secure.read(sfi=tags.SFI_PHOTO)

        self._select_df(tags.DF2_AID)
        address = self._plain.read_to_end(sfi=tags.SFI_ADDRESS)
        permissions = None
        if card_type is tags.CardType.RESIDENCE_CARD:
            permissions = (
                self._plain.read_to_end(sfi=tags.SFI_COMPREHENSIVE_PERMISSION),
                self._plain.read_to_end(sfi=tags.SFI_INDIVIDUAL_PERMISSION),
                self._plain.read_to_end(sfi=tags.SFI_EXTENSION_APPLICATION),
            )

        self._select_df(tags.DF3_AID)
        signature = self._plain.read_to_end(sfi=tags.SFI_SIGNATURE)

        files = ResidenceCardFiles(
            common_data=common_data,
            card_type=card_type_data,
            front_image=front_image,
            photo=photo,
            address=address,
            signature=signature,
            permissions=permissions,
        )
        record = parse_residence_card(files, card_number)
        verification = verify_check_code(
            record.check_code, record.certificate, record.front_image, record.photo,
        )
        return ResidenceCardResult(record=record, verification=verification)
