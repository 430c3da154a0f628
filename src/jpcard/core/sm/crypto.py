"""Block cipher primitives for secure messaging.

Two suites are supported: two-key 3DES with the ISO 9797-1 algorithm 3
retail MAC, and AES with CMAC. MAC functions take input that is already
padded to the block size.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.cmac import CMAC

MAC_LENGTH = 8


def _tdes_key(key_2k: bytes) -> bytes:
    """Expand 16-byte 2-key 3DES key to 24-byte (K1, K2, K1)."""
    return key_2k + key_2k[:8]


def _run(cipher: Cipher, data: bytes, *, decrypt: bool = False) -> bytes:
    ctx = cipher.decryptor() if decrypt else cipher.encryptor()
    return ctx.update(data) + ctx.finalize()


# -- 3DES ---------------------------------------------------------------------


def tdes_ecb(key: bytes, block: bytes) -> bytes:
    return _run(Cipher(TripleDES(_tdes_key(key)), modes.ECB()), block)


def tdes_cbc_encrypt(key: bytes, iv: bytes, data: bytes) -> bytes:
    return _run(Cipher(TripleDES(_tdes_key(key)), modes.CBC(iv)), data)


def tdes_cbc_decrypt(key: bytes, iv: bytes, data: bytes) -> bytes:
    return _run(Cipher(TripleDES(_tdes_key(key)), modes.CBC(iv)), data, decrypt=True)


def retail_mac(key: bytes, data: bytes, icv: bytes = b"\x00" * 8) -> bytes:
    """ISO 9797-1 algorithm 3 over block-aligned *data*.

    Single DES (K1) chains blocks 1..n-1, full two-key 3DES finishes
    block n.
    """
    if not data or len(data) % 8:
        raise ValueError("MAC input must be a non-empty multiple of 8 bytes")
    k1 = key[:8] * 3
    k_full = _tdes_key(key)
    cv = icv
    n = len(data) // 8
    for i in range(n):
        xored = bytes(a ^ b for a, b in zip(data[i * 8 : (i + 1) * 8], cv))
        k = k_full if i == n - 1 else k1
        cv = _run(Cipher(TripleDES(k), modes.ECB()), xored)
    return cv


# -- AES ----------------------------------------------------------------------


def aes_ecb(key: bytes, block: bytes) -> bytes:
    return _run(Cipher(algorithms.AES(key), modes.ECB()), block)


def aes_cbc_encrypt(key: bytes, iv: bytes, data: bytes) -> bytes:
    return _run(Cipher(algorithms.AES(key), modes.CBC(iv)), data)


def aes_cbc_decrypt(key: bytes, iv: bytes, data: bytes) -> bytes:
    return _run(Cipher(algorithms.AES(key), modes.CBC(iv)), data, decrypt=True)


def aes_cmac(key: bytes, data: bytes) -> bytes:
    """AES-CMAC truncated to MAC_LENGTH bytes."""
    c = CMAC(algorithms.AES(key))
    c.update(data)
    return c.finalize()[:MAC_LENGTH]


# -- hashing ------------------------------------------------------------------


def sha1(data: bytes) -> bytes:
    digest = hashes.Hash(hashes.SHA1())
    digest.update(data)
    return digest.finalize()


def sha256(data: bytes) -> bytes:
    digest = hashes.Hash(hashes.SHA256())
    digest.update(data)
    return digest.finalize()


# -- suites -------------------------------------------------------------------


@dataclass(frozen=True)
class CipherSuite:
    """Cipher and MAC functions for one secure messaging profile."""

    name: str
    block_size: int
    key_lengths: tuple[int, ...]
    ecb: Callable[[bytes, bytes], bytes]
    encrypt: Callable[[bytes, bytes, bytes], bytes]
    decrypt: Callable[[bytes, bytes, bytes], bytes]
    mac: Callable[[bytes, bytes], bytes]

    def __repr__(self) -> str:
        return f"CipherSuite({self.name})"


TDES = CipherSuite(
    name="3DES",
    block_size=8,
    key_lengths=(16,),
    ecb=tdes_ecb,
    encrypt=tdes_cbc_encrypt,
    decrypt=tdes_cbc_decrypt,
    mac=retail_mac,
)

AES = CipherSuite(
    name="AES",
    block_size=16,
    key_lengths=(16, 24, 32),
    ecb=aes_ecb,
    encrypt=aes_cbc_encrypt,
    decrypt=aes_cbc_decrypt,
    mac=aes_cmac,
)
