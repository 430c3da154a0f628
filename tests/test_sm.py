#!/usr/bin/env python3

import unittest

from fakes import CardSession, sw_response

from jpcard.core.base.iso7816 import (
    build_get_challenge,
    build_read_binary_protected,
    build_select_aid,
)
from jpcard.core.mynumber.tags import JPKI_AID
from jpcard.core.sm import AES, TDES, SMSession, bac
from jpcard.core.sm.crypto import retail_mac
from jpcard.core.sm.padding import pad80, unpad80
from jpcard.core.smartcard import Response, SecureMessagingError

KEYS = {
    TDES: (bytes.fromhex("0123456789ABCDEFFEDCBA9876543210"), bytes(range(16))),
    AES: (bytes(range(16)), bytes(range(16, 32))),
}


def pair(suite):
    enc, mac = KEYS[suite]
    return SMSession(suite, enc, mac), CardSession(suite, enc, mac)


class TestPadding(unittest.TestCase):
    def test_pad(self):
        self.assertEqual(pad80(b"", 8), bytes.fromhex("8000000000000000"))
        self.assertEqual(pad80(b"\x01" * 7, 8), b"\x01" * 7 + b"\x80")
        self.assertEqual(len(pad80(b"\x01" * 8, 8)), 16)

    def test_unpad(self):
        self.assertEqual(unpad80(b"\x01\x02\x80\x00\x00\x00\x00\x00", 8), b"\x01\x02")
        for bad in (bytes(8), b"\x01" * 8, b"\x80" + bytes(7) + bytes(8)):
            with self.assertRaises(ValueError):
                unpad80(bad, 8)


class TestRetailMac(unittest.TestCase):
    def test_mac_length_and_icv(self):
        key = bytes.fromhex("0123456789ABCDEF") * 2
        data = pad80(b"message", 8) + pad80(b"more", 8)
        self.assertEqual(len(retail_mac(key, data)), 8)
        self.assertNotEqual(retail_mac(key, data), retail_mac(key, data, b"\x01" * 8))

    def test_unaligned_input(self):
        with self.assertRaises(ValueError):
            retail_mac(bytes(16), b"abc")


class TestSession(unittest.TestCase):
    def exchange(self, session, card, apdu, body, sw=0x9000):
        wrapped = session.protect(apdu)
        self.assertIsNotNone(card.unwrap(wrapped))
        return session.unprotect(card.wrap(body, sw))

    def test_round_trip(self):
        for suite in (TDES, AES):
            with self.subTest(suite=suite.name):
                session, card = pair(suite)
                wrapped = session.protect(build_select_aid(JPKI_AID))
                self.assertEqual(wrapped.cla, 0x0C)
                self.assertNotIn(JPKI_AID, wrapped.data)
                data, le = card.unwrap(wrapped)
                self.assertEqual(data, JPKI_AID)
                self.assertIsNone(le)
                resp = session.unprotect(card.wrap(b"hello world", 0x9000))
                self.assertEqual(resp.data, b"hello world")
                self.assertEqual(resp.sw, 0x9000)
                self.assertEqual(session.counter, 1)

    def test_expected_length(self):
        session, card = pair(TDES)
        wrapped = session.protect(build_get_challenge(8))
        self.assertEqual(wrapped.le, 256)
        self.assertEqual(card.unwrap(wrapped), (b"", 8))
        session.unprotect(card.wrap(bytes(8), 0x9000))

        wrapped = session.protect(build_read_binary_protected(0x40, 1694))
        self.assertEqual(wrapped.le, 65536)
        self.assertEqual(card.unwrap(wrapped), (b"", 1694))

    def test_error_status_protected(self):
        session, card = pair(TDES)
        resp = self.exchange(session, card, build_select_aid(JPKI_AID), b"", 0x6A82)
        self.assertEqual(resp.sw, 0x6A82)
        self.assertEqual(resp.data, b"")
        self.assertFalse(session.closed)

    def test_error_without_sm_passes_through(self):
        session, _ = pair(TDES)
        session.protect(build_select_aid(JPKI_AID))
        resp = session.unprotect(Response(b"", 0x69, 0x88))
        self.assertEqual(resp.sw, 0x6988)
        self.assertFalse(session.closed)

    def test_every_corrupted_byte_rejected(self):
        for suite in (TDES, AES):
            session, card = pair(suite)
            card.unwrap(session.protect(build_select_aid(JPKI_AID)))
            length = len(card.wrap(b"secret data", 0x9000).data)
            for i in range(length):
                with self.subTest(suite=suite.name, offset=i):
                    session, card = pair(suite)
                    card.unwrap(session.protect(build_select_aid(JPKI_AID)))
                    resp = card.wrap(b"secret data", 0x9000)
                    corrupted = bytearray(resp.data)
                    corrupted[i] ^= 0x01
                    with self.assertRaises(SecureMessagingError):
                        session.unprotect(Response(bytes(corrupted), resp.sw1, resp.sw2))
                    self.assertTrue(session.closed)

    def test_status_word_mismatch(self):
        session, card = pair(TDES)
        card.unwrap(session.protect(build_select_aid(JPKI_AID)))
        resp = card.wrap(b"", 0x6A82)
        with self.assertRaisesRegex(SecureMessagingError, "integrity"):
            session.unprotect(Response(resp.data, 0x90, 0x00))

    def test_empty_success_response(self):
        session, _ = pair(TDES)
        session.protect(build_select_aid(JPKI_AID))
        with self.assertRaisesRegex(SecureMessagingError, "integrity"):
            session.unprotect(sw_response(b"", 0x9000))
        self.assertTrue(session.closed)

    def test_replayed_response(self):
        session, card = pair(TDES)
        card.unwrap(session.protect(build_select_aid(JPKI_AID)))
        first = card.wrap(b"one", 0x9000)
        session.unprotect(first)
        card.unwrap(session.protect(build_select_aid(JPKI_AID)))
        with self.assertRaises(SecureMessagingError):
            session.unprotect(first)

    def test_counter_desynchronized(self):
        session, _ = pair(TDES)
        session.protect(build_select_aid(JPKI_AID))
        with self.assertRaisesRegex(SecureMessagingError, "counter desynchronized"):
            session.protect(build_select_aid(JPKI_AID))
        self.assertTrue(session.closed)

    def test_unprotect_without_command(self):
        session, card = pair(TDES)
        with self.assertRaisesRegex(SecureMessagingError, "counter desynchronized"):
            session.unprotect(card.wrap(b"", 0x9000))

    def test_closed_session(self):
        session, _ = pair(TDES)
        session.close()
        with self.assertRaisesRegex(SecureMessagingError, "session closed"):
            session.protect(build_select_aid(JPKI_AID))

    def test_key_length(self):
        with self.assertRaises(ValueError):
            SMSession(TDES, bytes(8), bytes(16))
        with self.assertRaises(ValueError):
            SMSession(AES, bytes(16), bytes(20))


class TestKeyDerivation(unittest.TestCase):
    def test_card_number(self):
        self.assertEqual(bac.normalize_card_number(" ab12345678cd "), "AB12345678CD")
        for bad in ("AB1234567CD", "1212345678CD", "AB12345678C"):
            with self.assertRaises(ValueError):
                bac.normalize_card_number(bad)

    def test_access_key_ignores_case(self):
        self.assertEqual(bac.access_key("ab12345678cd"), bac.access_key("AB12345678CD"))
        self.assertEqual(len(bac.access_key("AB12345678CD")), 16)

    def test_session_keys_symmetric(self):
        a, b = bytes(range(16)), bytes(range(16, 32))
        self.assertEqual(bac.session_keys(a, b), bac.session_keys(b, a))
        enc, mac = bac.session_keys(a, b)
        self.assertNotEqual(enc, mac)


if __name__ == "__main__":
    unittest.main()
