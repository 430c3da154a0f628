from jpcard.core.sm.crypto import AES, TDES, CipherSuite
from jpcard.core.sm.session import SMSession

__all__ = ["AES", "CipherSuite", "SMSession", "TDES"]
