#!/usr/bin/env python3

import unittest

from fakes import ScriptedCard, rsp

from jpcard.core.base.iso7816 import (
    ISO7816,
    NUMERIC_PIN,
    SIGNATURE_PASSWORD,
    build_get_challenge,
    build_get_response,
    build_pin_status,
    build_read_binary,
    build_read_binary_protected,
    build_select_aid,
    build_select_fid,
    build_select_mf,
    build_verify,
)
from jpcard.core.mynumber.tags import JPKI_AID
from jpcard.core.sm.session import le_object
from jpcard.core.smartcard import APDU
from jpcard.core.smartcard.logging import PROTOCOL


def h(apdu):
    return apdu.to_bytes().hex().upper()


class TestFraming(unittest.TestCase):
    def test_case1(self):
        self.assertEqual(h(APDU(0x00, 0x20, 0x00, 0x80)), "00200080")

    def test_short(self):
        self.assertEqual(h(build_read_binary(0, 0x40)), "00B0000040")
        self.assertEqual(h(build_read_binary(0x0102, 256)), "00B0010200")

    def test_extended_le(self):
        self.assertEqual(h(build_read_binary(0, 258)), "00B00000000102")
        self.assertEqual(h(APDU(0x00, 0xB0, 0, 0, le=65536)), "00B00000000000")

    def test_extended_data(self):
        data = b"\x01" * 300
        raw = APDU(0x00, 0xD6, 0, 0, data=data, le=65536).to_bytes()
        self.assertEqual(raw[:7], bytes.fromhex("00D60000 00 012C"))
        self.assertEqual(raw[7:-2], data)
        self.assertEqual(raw[-2:], b"\x00\x00")

    def test_validation(self):
        with self.assertRaises(ValueError):
            APDU(0x100, 0xB0, 0, 0)
        with self.assertRaises(ValueError):
            APDU(0x00, 0xB0, 0, 0, le=0)
        with self.assertRaises(ValueError):
            APDU(0x00, 0xB0, 0, 0, le=65537)
        with self.assertRaises(ValueError):
            APDU(0x00, 0xD6, 0, 0, data=bytes(65536))


class TestBuilders(unittest.TestCase):
    def test_select(self):
        self.assertEqual(h(build_select_mf()), "00A40000023F00")
        self.assertEqual(h(build_select_fid(0x0018)), "00A4020C020018")
        self.assertEqual(h(build_select_aid(JPKI_AID)), "00A4040C0AD392F000260100000001")

    def test_select_aid_length(self):
        with self.assertRaises(ValueError):
            build_select_aid(b"\xd3\x92\xf0\x00")
        with self.assertRaises(ValueError):
            build_select_aid(bytes(17))

    def test_verify(self):
        self.assertEqual(h(build_verify("1234", NUMERIC_PIN)), "002000800431323334")
        self.assertEqual(h(build_pin_status()), "00200080")

    def test_get_challenge(self):
        self.assertEqual(h(build_get_challenge()), "0084000008")
        self.assertEqual(h(build_get_response(0x10)), "00C0000010")
        self.assertEqual(h(build_get_response(256)), "00C0000000")

    def test_read_binary_sfi(self):
        self.assertEqual(h(build_read_binary(0, 0x40, sfi=0x0B)), "00B08B0040")
        with self.assertRaises(ValueError):
            build_read_binary(0x100, 0x40, sfi=0x0B)
        with self.assertRaises(ValueError):
            build_read_binary(0, 0x40, sfi=0x1F)
        with self.assertRaises(ValueError):
            build_read_binary(0x8000, 0x40)

    def test_read_binary_protected(self):
        apdu = build_read_binary_protected(0, 0x40, sfi=0x05)
        self.assertEqual((apdu.cla, apdu.p1, apdu.p2), (0x08, 0x85, 0x00))
        self.assertEqual(apdu.data, bytes.fromhex("960140"))
        self.assertEqual(apdu.le, 65536)

    def test_le_object(self):
        self.assertEqual(le_object(0x40), bytes.fromhex("960140"))
        self.assertEqual(le_object(256), bytes.fromhex("960100"))
        self.assertEqual(le_object(1694), bytes.fromhex("9602069E"))
        self.assertEqual(le_object(65536), bytes.fromhex("96020000"))


class TestSend(unittest.TestCase):
    def test_get_response(self):
        card = ScriptedCard(rsp("0102 6102"), rsp("0304 6101"), rsp("05 9000"))
        resp = ISO7816(card.transmit).send_get_challenge(5)
        self.assertEqual(resp.data, bytes.fromhex("0102030405"))
        self.assertTrue(resp.success)
        self.assertEqual([h(a) for a in card.sent], ["0084000005", "00C0000002", "00C0000001"])

    def test_get_response_error(self):
        card = ScriptedCard(rsp("6110"), rsp("6A82"))
        resp = ISO7816(card.transmit).send_select_aid(JPKI_AID)
        self.assertEqual(resp.sw, 0x6A82)
        self.assertEqual([a.ins for a in card.sent], [0xA4, 0xC0])

    def test_wrong_le_resent(self):
        card = ScriptedCard(rsp("6C04"), rsp("01020304 9000"))
        resp = ISO7816(card.transmit).send_read_binary(0, 0x10)
        self.assertEqual(resp.data, bytes.fromhex("01020304"))
        self.assertEqual([h(a) for a in card.sent], ["00B0000010", "00B0000004"])

    def test_status_logged_at_protocol_level(self):
        card = ScriptedCard(rsp("6A82"))
        with self.assertLogs("jpcard.core.base.iso7816", level=PROTOCOL) as cm:
            ISO7816(card.transmit).send_select_fid(0x000A)
        self.assertEqual(len(cm.records), 1)
        self.assertEqual(cm.records[0].levelname, "PROTOCOL")
        self.assertIn("SELECT EF 000A", cm.output[0])
        self.assertIn("6A82", cm.output[0])

    def test_wrong_le_without_le(self):
        card = ScriptedCard(rsp("6C04"))
        self.assertEqual(ISO7816(card.transmit).send_select_fid(0x0018).sw, 0x6C04)
        self.assertEqual(len(card.sent), 1)


class TestPinFormat(unittest.TestCase):
    def test_numeric(self):
        self.assertEqual(NUMERIC_PIN.encode("0000"), b"0000")
        for pin in ("123", "12345", "12a4", ""):
            with self.assertRaises(ValueError):
                NUMERIC_PIN.encode(pin)

    def test_signature_password(self):
        self.assertEqual(SIGNATURE_PASSWORD.encode("ABC123"), b"ABC123")
        for password in ("ABC12", "abc123", "A" * 17, "ABC 123"):
            with self.assertRaises(ValueError):
                SIGNATURE_PASSWORD.encode(password)


if __name__ == "__main__":
    unittest.main()
