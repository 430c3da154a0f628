"""Mutual authentication keyed by the printed card number.

Both sides prove knowledge of K = SHA-1(card number)[:16], exchange
random key halves under it and derive 3DES session keys from their XOR.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable

from cryptography.hazmat.primitives.constant_time import bytes_eq

from jpcard.core.base.iso7816 import ISO7816
from jpcard.core.sm.crypto import TDES, retail_mac, sha1, tdes_cbc_decrypt, tdes_cbc_encrypt
from jpcard.core.sm.padding import pad80
from jpcard.core.sm.session import SMSession
from jpcard.core.smartcard import SecureMessagingError, check

lg = logging.getLogger(__name__)

_CARD_NUMBER = re.compile(r"[A-Z]{2}[0-9]{8}[A-Z]{2}")

_ZERO_IV = b"\x00" * 8
_KEY_ENC = b"\x00\x00\x00\x01"
_KEY_MAC = b"\x00\x00\x00\x02"

CHALLENGE_LENGTH = 8
KEY_SEED_LENGTH = 16
_CRYPTOGRAM_LENGTH = 2 * CHALLENGE_LENGTH + KEY_SEED_LENGTH
_RESPONSE_LENGTH = _CRYPTOGRAM_LENGTH + 8


def normalize_card_number(card_number: str) -> str:
    """Strip and upper-case a card number, or raise ValueError."""
    number = card_number.strip().upper()
    if not _CARD_NUMBER.fullmatch(number):
        raise ValueError("card number must be 2 letters, 8 digits and 2 letters")
    return number


def access_key(card_number: str) -> bytes:
    return sha1(normalize_card_number(card_number).encode("ascii"))[:16]


def session_keys(k_ifd: bytes, k_icc: bytes) -> tuple[bytes, bytes]:
    """Derive (K_enc, K_mac) from the two exchanged key halves."""
    seed = bytes(a ^ b for a, b in zip(k_ifd, k_icc))
    return sha1(seed + _KEY_ENC)[:16], sha1(seed + _KEY_MAC)[:16]


def _mac(key: bytes, data: bytes) -> bytes:
    return retail_mac(key, pad80(data, 8))


def authenticate(
    iso: ISO7816,
    card_number: str,
    *,
    random: Callable[[int], bytes] = os.urandom,
) -> SMSession:
    """Run GET CHALLENGE / MUTUAL AUTHENTICATE and open a session.

    Raises SecureMessagingError if the card's answer does not verify.
    """
    key = access_key(card_number)

    resp = iso.send_get_challenge(CHALLENGE_LENGTH)
    check(resp)
    rnd_icc = resp.data
    if len(rnd_icc) != CHALLENGE_LENGTH:
        raise SecureMessagingError("invalid challenge length")

    rnd_ifd = random(CHALLENGE_LENGTH)
    k_ifd = random(KEY_SEED_LENGTH)
    e_ifd = tdes_cbc_encrypt(key, _ZERO_IV, rnd_ifd + rnd_icc + k_ifd)
    m_ifd = _mac(key, e_ifd)

    resp = iso.send_mutual_authenticate(e_ifd + m_ifd, _RESPONSE_LENGTH)
    check(resp)
    if len(resp.data) != _RESPONSE_LENGTH:
        raise SecureMessagingError("invalid authentication response length")
    e_icc = resp.data[:_CRYPTOGRAM_LENGTH]
    m_icc = resp.data[_CRYPTOGRAM_LENGTH:]
    if not bytes_eq(_mac(key, e_icc), m_icc):
        raise SecureMessagingError("card authentication MAC mismatch")

    plain = tdes_cbc_decrypt(key, _ZERO_IV, e_icc)
    if not bytes_eq(plain[:CHALLENGE_LENGTH], rnd_icc):
        raise SecureMessagingError("card returned a different challenge")
    if not bytes_eq(plain[CHALLENGE_LENGTH : 2 * CHALLENGE_LENGTH], rnd_ifd):
        raise SecureMessagingError("card did not echo the terminal challenge")
    k_icc = plain[2 * CHALLENGE_LENGTH :]

    k_enc, k_mac = session_keys(k_ifd, k_icc)
    lg.info("mutual authentication complete")
    return SMSession(TDES, k_enc, k_mac)
