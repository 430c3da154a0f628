#!/usr/bin/env python3

import datetime
import unittest
from unittest import mock

from click.testing import CliRunner
from fakes import ScriptedCard, rsp

from jpcard.app import session
from jpcard.app.display import format_document, format_personal_info, format_verification
from jpcard.core.base import PLAIN_POLICY, ChunkPolicy
from jpcard.core.mynumber import Credential, PersonalInfo, Sex
from jpcard.core.residence import CardType, DocumentRecord, VerificationError, VerificationResult
from jpcard.core.smartcard.tlv import TLV
from jpcard.scripts import jpcard


class TestDisplay(unittest.TestCase):
    def test_personal_info(self):
        info = PersonalInfo(
            name="番号　花子",
            address="東京都",
            birth_date=datetime.date(1980, 1, 1),
            sex=Sex.FEMALE,
            extra=(TLV(0xDF99, b"\xaa"),),
        )
        text = format_personal_info(info)
        self.assertIn("番号　花子", text)
        self.assertIn("1980-01-01", text)
        self.assertIn("FEMALE", text)
        self.assertIn("DF99: AA", text)

    def test_document(self):
        record = DocumentRecord(
            document_number="AB12345678CD",
            card_type=CardType.SPECIAL_PERMANENT_RESIDENT,
            spec_version="03",
            issue_date=None,
            front_image=bytes(10),
            photo=bytes(5),
            address="東京都港区",
            address_date=datetime.date(2024, 5, 1),
            municipality_code="131016",
            check_code=bytes(256),
            certificate=b"",
            expiry_date=datetime.date(2029, 4, 1),
        )
        text = format_document(record)
        self.assertIn("AB12345678CD", text)
        self.assertIn("SPECIAL_PERMANENT_RESIDENT", text)
        self.assertIn("(unset)", text)
        self.assertIn("2029-04-01", text)
        self.assertNotIn("Permission", text)

    def test_verification(self):
        text = format_verification(VerificationResult(False, VerificationError.HASH_MISMATCH))
        self.assertIn("INVALID (image hash does not match the check code)", text)


class TestCli(unittest.TestCase):
    def invoke(self, args, card=None):
        obj = {"transport": lambda: card} if card is not None else None
        return CliRunner().invoke(jpcard, args, obj=obj)

    def test_help(self):
        result = self.invoke(["--help"])
        self.assertEqual(result.exit_code, 0)
        for command in ("certificate", "basic-info", "my-number", "pin-status", "residence"):
            self.assertIn(command, result.output)

    def test_invalid_chunk_policy(self):
        result = self.invoke(["--initial-chunk", "300", "--max-chunk", "256", "pin-status"])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("initial chunk", result.output)
        self.assertIn("'--max-chunk'", result.output)

    def test_initial_chunk_over_default_maximum(self):
        result = self.invoke(["--initial-chunk", "300", "pin-status"])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("'--initial-chunk'", result.output)

    def test_pin_status(self):
        card = ScriptedCard(rsp("9000"), rsp("9000"), rsp("63C3"))
        with self.assertLogs("jpcard.app.session", level="INFO") as cm:
            result = self.invoke(["pin-status", "-t", "auth"], card)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("3 attempts left", cm.output[-1])
        self.assertEqual(card.sent[-1].to_bytes().hex().upper(), "00200080")

    def test_failure_exit_status(self):
        card = ScriptedCard(rsp("6A82"))
        with self.assertLogs("jpcard.core.base.terminal", level="ERROR"):
            result = self.invoke(["my-number", "--pin", "1234"], card)
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(len(card.sent), 1)

    def test_secure_chunk_policy(self):
        with mock.patch("jpcard.app.session.residence_session", return_value=True) as run:
            result = self.invoke(
                ["--secure-max-chunk", "32", "residence", "-n", "AB12345678CD"],
                ScriptedCard(),
            )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(run.call_args.args[3], ChunkPolicy(initial=32, maximum=32))
        self.assertEqual(run.call_args.args[2], PLAIN_POLICY)


class TestSession(unittest.TestCase):
    def test_failure_reported(self):
        card = ScriptedCard(rsp("6A82"))
        with self.assertLogs("jpcard.core.base.terminal", level="ERROR"):
            ok = session.mynumber_session(
                lambda t: session.read_my_number(t, "1234"), transport=lambda: card,
            )
        self.assertFalse(ok)
        self.assertEqual(len(card.sent), 1)

    def test_success(self):
        card = ScriptedCard(rsp("9000"), rsp("9000"), rsp("63C3"))
        with self.assertLogs("jpcard.app.session", level="INFO") as cm:
            ok = session.mynumber_session(
                lambda t: session.pin_status(t, Credential.USER_AUTHENTICATION),
                transport=lambda: card,
            )
        self.assertTrue(ok)
        self.assertIn("3 attempts left", cm.output[-1])



if __name__ == "__main__":
    unittest.main()
