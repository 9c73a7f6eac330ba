"""Key loading, payload encryption and signatures for TRA VFD requests."""

from __future__ import annotations

import base64
import binascii
from pathlib import Path
from typing import Optional, Union

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.serialization import pkcs12

from .conf import TraVfdSettings
from .errors import ConfigurationError, CryptoError

PKCS12_SUFFIXES = {".pfx", ".p12"}
# PKCS#1 v1.5 padding takes 11 bytes of every RSA block.
PKCS1_OVERHEAD = 11

BytesLike = Union[bytes, bytearray, str]


def _as_bytes(value: BytesLike) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _password_bytes(password: Optional[BytesLike]) -> Optional[bytes]:
    if password is None or password == "" or password == b"":
        return None
    return _as_bytes(password)


def _read_key_file(path: Union[str, Path]) -> bytes:
    try:
        with open(path, "rb") as fh:
            content = fh.read()
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Key file not found: {path}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Could not read key file {path}: {exc}") from exc

    if not content:
        raise ConfigurationError(f"Key file is empty: {path}")
    return content


def _require_rsa(key: object, path: Union[str, Path]) -> None:
    if not isinstance(key, (rsa.RSAPublicKey, rsa.RSAPrivateKey)):
        raise ConfigurationError(f"Key in {path} is not an RSA key")


def load_public_key(path: Union[str, Path]) -> rsa.RSAPublicKey:
    """Load an RSA public key from a PEM/DER key file or X.509 certificate."""

    content = _read_key_file(path)
    is_pem = b"-----BEGIN" in content

    if is_pem and b"CERTIFICATE" in content:
        loaders = (lambda data: x509.load_pem_x509_certificate(data).public_key(),)
    elif is_pem:
        loaders = (serialization.load_pem_public_key,)
    else:
        loaders = (
            serialization.load_der_public_key,
            lambda data: x509.load_der_x509_certificate(data).public_key(),
        )

    for loader in loaders:
        try:
            key = loader(content)
        except (ValueError, UnsupportedAlgorithm):
            continue
        _require_rsa(key, path)
        return key

    raise ConfigurationError(f"Could not load a public key from {path}")


def load_key_from_pkcs12(
    path: Union[str, Path], password: Optional[BytesLike]
) -> rsa.RSAPrivateKey:
    """Extract the private key from a PKCS#12 (.pfx) bundle."""

    content = _read_key_file(path)
    try:
        private_key, _certificate, _additional = pkcs12.load_key_and_certificates(
            content, _password_bytes(password)
        )
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise ConfigurationError(
            f"Could not open PKCS#12 bundle {path}; check the password"
        ) from exc

    if private_key is None:
        raise ConfigurationError(f"PKCS#12 bundle {path} has no private key")
    _require_rsa(private_key, path)
    return private_key


def load_private_key(
    path: Union[str, Path], password: Optional[BytesLike] = None
) -> rsa.RSAPrivateKey:
    """Load an RSA private key from a PEM/DER file or a PKCS#12 bundle."""

    if Path(path).suffix.lower() in PKCS12_SUFFIXES:
        return load_key_from_pkcs12(path, password)

    content = _read_key_file(path)
    loader = (
        serialization.load_pem_private_key
        if b"-----BEGIN" in content
        else serialization.load_der_private_key
    )
    try:
        key = loader(content, password=_password_bytes(password))
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise ConfigurationError(
            f"Invalid private key in {path} or incorrect password"
        ) from exc

    _require_rsa(key, path)
    return key


def _block_size(key: Union[rsa.RSAPublicKey, rsa.RSAPrivateKey]) -> int:
    return key.key_size // 8


def encrypt(plaintext: BytesLike, public_key: rsa.RSAPublicKey) -> bytes:
    """Encrypt ``plaintext`` with RSA PKCS#1 v1.5 and return base64 bytes.

    Payloads longer than a single RSA block are split into chunks; the
    ciphertext blocks are concatenated before encoding.
    """

    data = _as_bytes(plaintext)
    chunk = _block_size(public_key) - PKCS1_OVERHEAD
    chunks = [data[i:i + chunk] for i in range(0, len(data), chunk)] or [b""]

    try:
        ciphertext = b"".join(
            public_key.encrypt(part, padding.PKCS1v15()) for part in chunks
        )
    except ValueError as exc:
        raise CryptoError(f"Encryption failed: {exc}") from exc
    return base64.b64encode(ciphertext)


def decrypt(ciphertext: BytesLike, private_key: rsa.RSAPrivateKey) -> bytes:
    """Decode base64 ``ciphertext`` and decrypt it block by block."""

    try:
        raw = base64.b64decode(_as_bytes(ciphertext).strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise CryptoError("Ciphertext is not valid base64") from exc

    size = _block_size(private_key)
    if not raw or len(raw) % size:
        raise CryptoError(
            f"Ciphertext length {len(raw)} is not a multiple of the {size}-byte key block"
        )

    try:
        return b"".join(
            private_key.decrypt(raw[i:i + size], padding.PKCS1v15())
            for i in range(0, len(raw), size)
        )
    except ValueError as exc:
        raise CryptoError("Decryption failed; corrupt ciphertext or wrong key") from exc


def create_signature(private_key: rsa.RSAPrivateKey, message: BytesLike) -> str:
    """Return a base64 detached SHA-1 signature of ``message``."""

    signature = private_key.sign(_as_bytes(message), padding.PKCS1v15(), hashes.SHA1())
    return base64.b64encode(signature).decode("ascii")


def verify_signature(
    public_key: rsa.RSAPublicKey, message: BytesLike, signature: BytesLike
) -> bool:
    try:
        raw_signature = base64.b64decode(_as_bytes(signature), validate=True)
        public_key.verify(raw_signature, _as_bytes(message), padding.PKCS1v15(), hashes.SHA1())
    except (InvalidSignature, binascii.Error, ValueError):
        return False
    return True


class CryptoHelper:
    """Encrypt requests and decrypt responses with the configured key pair."""

    def __init__(
        self,
        *,
        public_key_path: Optional[Union[str, Path]] = None,
        private_key_path: Optional[Union[str, Path]] = None,
        private_key_password: Optional[str] = None,
    ) -> None:
        self._public_key_path = public_key_path
        self._private_key_path = private_key_path
        self._private_key_password = private_key_password
        self._public_key: Optional[rsa.RSAPublicKey] = None
        self._private_key: Optional[rsa.RSAPrivateKey] = None

    @classmethod
    def from_settings(cls, settings: TraVfdSettings) -> "CryptoHelper":
        return cls(
            public_key_path=settings.public_key_path,
            private_key_path=settings.private_key_path,
            private_key_password=settings.private_key_password,
        )

    def ensure_public_key(self) -> rsa.RSAPublicKey:
        if self._public_key is None:
            if not self._public_key_path:
                raise ConfigurationError("No public key configured (TRAVFD['PUBLIC_KEY_PATH'])")
            self._public_key = load_public_key(self._public_key_path)
        return self._public_key

    def ensure_private_key(self) -> rsa.RSAPrivateKey:
        if self._private_key is None:
            if not self._private_key_path:
                raise ConfigurationError("No private key configured (TRAVFD['PRIVATE_KEY_PATH'])")
            self._private_key = load_private_key(
                self._private_key_path, self._private_key_password
            )
        return self._private_key

    def encrypt(self, plaintext: BytesLike) -> bytes:
        return encrypt(plaintext, self.ensure_public_key())

    def decrypt(self, ciphertext: BytesLike) -> bytes:
        return decrypt(ciphertext, self.ensure_private_key())


__all__ = [
    "CryptoHelper",
    "create_signature",
    "decrypt",
    "encrypt",
    "load_key_from_pkcs12",
    "load_private_key",
    "load_public_key",
    "verify_signature",
]
