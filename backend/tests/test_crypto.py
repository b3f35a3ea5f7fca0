from __future__ import annotations

import base64
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from backend.app.config import settings
from backend.app.utils import crypto

HEX_KEY = "11" * 32


class CryptoTests(unittest.TestCase):
    def test_without_key_plaintext_passes_through(self):
        with patch.object(settings, "encryption_key", None):
            self.assertEqual(crypto.encrypt_if_possible("hello"), "hello")
            self.assertEqual(crypto.decrypt_if_encrypted("hello"), "hello")
            self.assertIsNone(crypto.decrypt_if_encrypted(None))

    def test_encrypt_then_decrypt_with_hex_key(self):
        with patch.object(settings, "encryption_key", HEX_KEY):
            sealed = crypto.encrypt_if_possible("quiet morning, coffee")
            self.assertTrue(crypto.is_encrypted(sealed))
            parts = sealed.split(":")
            self.assertEqual(len(parts), 5)
            self.assertEqual(len(base64.b64decode(parts[2])), 12)
            self.assertEqual(len(base64.b64decode(parts[4])), 16)
            self.assertEqual(crypto.decrypt_if_encrypted(sealed), "quiet morning, coffee")

    def test_base64_and_passphrase_keys(self):
        b64_key = base64.b64encode(bytes(range(32))).decode("ascii")
        for key in (b64_key, "a short passphrase"):
            with patch.object(settings, "encryption_key", key):
                sealed = crypto.encrypt_if_possible("text")
                self.assertEqual(crypto.decrypt_if_encrypted(sealed), "text")

    def test_ciphertext_without_key_is_returned_unchanged(self):
        with patch.object(settings, "encryption_key", HEX_KEY):
            sealed = crypto.encrypt_if_possible("secret")
        with patch.object(settings, "encryption_key", None):
            self.assertEqual(crypto.decrypt_if_encrypted(sealed), sealed)

    def test_wrong_key_or_tampered_payload_is_returned_unchanged(self):
        with patch.object(settings, "encryption_key", HEX_KEY):
            sealed = crypto.encrypt_if_possible("secret")
        with patch.object(settings, "encryption_key", "22" * 32):
            self.assertEqual(crypto.decrypt_if_encrypted(sealed), sealed)
        with patch.object(settings, "encryption_key", HEX_KEY):
            self.assertEqual(crypto.decrypt_if_encrypted("enc:v1:broken"), "enc:v1:broken")

    def test_is_encrypted(self):
        self.assertTrue(crypto.is_encrypted("enc:v1:a:b:c"))
        self.assertFalse(crypto.is_encrypted("enc:v2:a:b:c"))
        self.assertFalse(crypto.is_encrypted(""))
        self.assertFalse(crypto.is_encrypted(None))


if __name__ == "__main__":
    unittest.main()
