from jpcard.core.base.agent import Agent, SecureChannel, Transport
from jpcard.core.base.iso7816 import ISO7816, NUMERIC_PIN, SIGNATURE_PASSWORD, PinFormat
from jpcard.core.base.message import Message, Result
from jpcard.core.base.reader import (
    PLAIN_POLICY,
    SECURE_POLICY,
    AssemblyBuffer,
    ChunkedReader,
    ChunkPolicy,
    ReadState,
)
from jpcard.core.base.terminal import Terminal

__all__ = [
    "Agent",
    "AssemblyBuffer",
    "ChunkPolicy",
    "ChunkedReader",
    "ISO7816",
    "Message",
    "NUMERIC_PIN",
    "PLAIN_POLICY",
    "PinFormat",
    "ReadState",
    "Result",
    "SECURE_POLICY",
    "SIGNATURE_PASSWORD",
    "SecureChannel",
    "Terminal",
    "Transport",
]
