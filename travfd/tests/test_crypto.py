"""Tests for key loading, encryption and signatures."""

from __future__ import annotations

import base64
import tempfile
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from django.test import SimpleTestCase

from travfd import crypto
from travfd.errors import ConfigurationError, CryptoError

from .fakes import (
    generate_private_key,
    pkcs12_bundle,
    private_key_pem,
    public_key_pem,
    self_signed_certificate,
)


class CryptoTestCase(SimpleTestCase):
    @classmethod
    def setUpClass(cls) -> None:
        super().setUpClass()
        cls.key = generate_private_key()
        cls.other_key = generate_private_key()
        cls._tmp = tempfile.TemporaryDirectory()
        cls.tmp_path = Path(cls._tmp.name)

        cls.public_path = cls._write("public.pem", public_key_pem(cls.key))
        cls.private_path = cls._write("private.pem", private_key_pem(cls.key))
        cls.locked_path = cls._write("locked.pem", private_key_pem(cls.key, b"s3cret"))
        cls.pfx_path = cls._write("bundle.pfx", pkcs12_bundle(cls.key, b"pfx-pass"))
        cls.cert_path = cls._write(
            "cert.pem",
            self_signed_certificate(cls.key).public_bytes(serialization.Encoding.PEM),
        )
        cls.garbage_path = cls._write("garbage.pem", b"not a key at all")

    @classmethod
    def tearDownClass(cls) -> None:
        cls._tmp.cleanup()
        super().tearDownClass()

    @classmethod
    def _write(cls, name: str, content: bytes) -> Path:
        path = cls.tmp_path / name
        path.write_bytes(content)
        return path


class KeyLoadingTests(CryptoTestCase):
    def test_load_public_key_from_pem(self) -> None:
        key = crypto.load_public_key(self.public_path)
        self.assertEqual(key.public_numbers(), self.key.public_key().public_numbers())

    def test_load_public_key_from_certificate(self) -> None:
        key = crypto.load_public_key(self.cert_path)
        self.assertEqual(key.public_numbers(), self.key.public_key().public_numbers())

    def test_load_public_key_missing_file(self) -> None:
        with self.assertRaises(ConfigurationError):
            crypto.load_public_key(self.tmp_path / "missing.pem")

    def test_load_public_key_garbage(self) -> None:
        with self.assertRaises(ConfigurationError):
            crypto.load_public_key(self.garbage_path)

    def test_load_private_key_plain_and_locked(self) -> None:
        plain = crypto.load_private_key(self.private_path)
        locked = crypto.load_private_key(self.locked_path, "s3cret")
        self.assertEqual(plain.private_numbers(), locked.private_numbers())

    def test_load_private_key_wrong_password(self) -> None:
        with self.assertRaises(ConfigurationError):
            crypto.load_private_key(self.locked_path, "wrong")

    def test_load_private_key_missing_password(self) -> None:
        with self.assertRaises(ConfigurationError):
            crypto.load_private_key(self.locked_path)

    def test_load_key_from_pkcs12(self) -> None:
        key = crypto.load_key_from_pkcs12(self.pfx_path, "pfx-pass")
        self.assertEqual(key.private_numbers(), self.key.private_numbers())

    def test_load_private_key_dispatches_on_pfx_suffix(self) -> None:
        key = crypto.load_private_key(self.pfx_path, "pfx-pass")
        self.assertEqual(key.private_numbers(), self.key.private_numbers())

    def test_pkcs12_wrong_password(self) -> None:
        with self.assertRaises(ConfigurationError):
            crypto.load_key_from_pkcs12(self.pfx_path, "nope")

    def test_pkcs12_missing_file(self) -> None:
        with self.assertRaises(ConfigurationError):
            crypto.load_key_from_pkcs12(self.tmp_path / "missing.pfx", "pfx-pass")

    def test_pkcs12_unreadable_content(self) -> None:
        with self.assertRaises(ConfigurationError):
            crypto.load_key_from_pkcs12(self.garbage_path, "pfx-pass")


class EncryptionTests(CryptoTestCase):
    def test_encrypt_then_decrypt(self) -> None:
        plaintext = b"<Request><TIN>123456789</TIN></Request>"
        ciphertext = crypto.encrypt(plaintext, self.key.public_key())

        self.assertNotIn(b"TIN", ciphertext)
        base64.b64decode(ciphertext, validate=True)
        self.assertEqual(crypto.decrypt(ciphertext, self.key), plaintext)

    def test_payload_longer_than_one_block(self) -> None:
        plaintext = ("<ITEM>" + "x" * 40 + "</ITEM>").encode() * 40
        ciphertext = crypto.encrypt(plaintext, self.key.public_key())

        raw = base64.b64decode(ciphertext)
        self.assertGreater(len(raw), 256)
        self.assertEqual(len(raw) % 256, 0)
        self.assertEqual(crypto.decrypt(ciphertext, self.key), plaintext)

    def test_empty_payload(self) -> None:
        ciphertext = crypto.encrypt(b"", self.key.public_key())
        self.assertEqual(crypto.decrypt(ciphertext, self.key), b"")

    def test_decrypt_rejects_bad_base64(self) -> None:
        with self.assertRaises(CryptoError):
            crypto.decrypt(b"***not base64***", self.key)

    def test_decrypt_rejects_truncated_ciphertext(self) -> None:
        ciphertext = base64.b64decode(crypto.encrypt(b"hello", self.key.public_key()))
        with self.assertRaises(CryptoError):
            crypto.decrypt(base64.b64encode(ciphertext[:-10]), self.key)


class SignatureTests(CryptoTestCase):
    def test_sign_and_verify(self) -> None:
        signature = crypto.create_signature(self.key, "<RCT>data</RCT>")
        self.assertTrue(crypto.verify_signature(self.key.public_key(), "<RCT>data</RCT>", signature))

    def test_verify_rejects_tampered_message(self) -> None:
        signature = crypto.create_signature(self.key, b"payload")
        self.assertFalse(crypto.verify_signature(self.key.public_key(), b"payload!", signature))

    def test_verify_rejects_other_key(self) -> None:
        signature = crypto.create_signature(self.other_key, b"payload")
        self.assertFalse(crypto.verify_signature(self.key.public_key(), b"payload", signature))

    def test_verify_rejects_garbage_signature(self) -> None:
        self.assertFalse(crypto.verify_signature(self.key.public_key(), b"payload", "%%%"))


class CryptoHelperTests(CryptoTestCase):
    def test_round_trip_with_configured_paths(self) -> None:
        helper = crypto.CryptoHelper(
            public_key_path=self.public_path,
            private_key_path=self.locked_path,
            private_key_password="s3cret",
        )
        self.assertEqual(helper.decrypt(helper.encrypt("<Request/>")), b"<Request/>")

    def test_wrong_password_is_configuration_error(self) -> None:
        helper = crypto.CryptoHelper(
            public_key_path=self.public_path,
            private_key_path=self.locked_path,
            private_key_password="wrong",
        )
        ciphertext = helper.encrypt(b"data")
        with self.assertRaises(ConfigurationError):
            helper.decrypt(ciphertext)

    def test_missing_paths(self) -> None:
        helper = crypto.CryptoHelper()
        with self.assertRaises(ConfigurationError):
            helper.encrypt(b"data")
        with self.assertRaises(ConfigurationError):
            helper.decrypt(b"data")

    def test_keys_are_loaded_once(self) -> None:
        helper = crypto.CryptoHelper(public_key_path=self.public_path)
        self.assertIs(helper.ensure_public_key(), helper.ensure_public_key())
