#!/usr/bin/env python3

import unittest

from jpcard.core.smartcard import (
    CardError,
    Condition,
    CredentialBlockedError,
    CredentialError,
    Response,
    check,
    classify,
)


class TestClassify(unittest.TestCase):
    def test_success(self):
        outcome = classify(0x90, 0x00)
        self.assertIs(outcome.condition, Condition.SUCCESS)
        self.assertTrue(outcome.success)

    def test_only_9000_succeeds(self):
        for sw1, sw2 in ((0x61, 0x10), (0x62, 0x82), (0x90, 0x01)):
            self.assertFalse(classify(sw1, sw2).success, f"{sw1:02X}{sw2:02X}")
        self.assertIs(classify(0x61, 0x10).condition, Condition.CARD_REJECTED)

    def test_file_not_found(self):
        self.assertIs(classify(0x6A, 0x82).condition, Condition.FILE_NOT_FOUND)

    def test_wrong_credential(self):
        outcome = classify(0x63, 0xC3)
        self.assertIs(outcome.condition, Condition.WRONG_CREDENTIAL)
        self.assertEqual(outcome.retries, 3)
        self.assertEqual(str(outcome), "63C3 verification failed, 3 attempts left")

    def test_blocked(self):
        for sw1, sw2 in ((0x63, 0xC0), (0x69, 0x83)):
            outcome = classify(sw1, sw2)
            self.assertIs(outcome.condition, Condition.CREDENTIAL_BLOCKED)
            self.assertEqual(outcome.retries, 0)

    def test_other_conditions(self):
        cases = {
            (0x62, 0x82): Condition.END_OF_FILE,
            (0x67, 0x00): Condition.WRONG_LENGTH,
            (0x69, 0x82): Condition.SECURITY_NOT_SATISFIED,
            (0x69, 0x88): Condition.SM_DATA_INVALID,
            (0x6B, 0x00): Condition.WRONG_PARAMETERS,
            (0x6D, 0x00): Condition.INS_NOT_SUPPORTED,
            (0x6E, 0x00): Condition.CLA_NOT_SUPPORTED,
            (0x6F, 0x00): Condition.CARD_REJECTED,
            (0x63, 0x00): Condition.CARD_REJECTED,
        }
        for (sw1, sw2), condition in cases.items():
            self.assertIs(classify(sw1, sw2).condition, condition, f"{sw1:02X}{sw2:02X}")


class TestCheck(unittest.TestCase):
    def test_success_returns_outcome(self):
        self.assertTrue(check(Response(b"", 0x90, 0x00)).success)

    def test_wrong_pin(self):
        with self.assertRaises(CredentialError) as cm:
            check(Response(b"", 0x63, 0xC2))
        self.assertEqual(cm.exception.retries, 2)
        self.assertIsInstance(cm.exception, CardError)

    def test_blocked(self):
        with self.assertRaises(CredentialBlockedError):
            check(Response(b"", 0x63, 0xC0))

    def test_pending_response_data_is_an_error(self):
        with self.assertRaises(CardError):
            check(Response(b"", 0x61, 0x10))

    def test_card_error(self):
        with self.assertRaises(CardError) as cm:
            check(Response(b"", 0x6A, 0x82))
        self.assertEqual(cm.exception.sw, 0x6A82)
        self.assertIs(cm.exception.outcome.condition, Condition.FILE_NOT_FOUND)
        self.assertIn("6A82", str(cm.exception))


if __name__ == "__main__":
    unittest.main()
