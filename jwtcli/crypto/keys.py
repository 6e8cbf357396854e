"""Secret reference loading, key encoding inference and JWK conversion."""

from pathlib import Path

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ec import (
    EllipticCurvePrivateKey,
    EllipticCurvePublicKey,
)
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from jwt.algorithms import ECAlgorithm, RSAAlgorithm

from jwtcli.core.logging import get_logger
from jwtcli.crypto.errors import (
    InvalidEcdsaKeyError,
    InvalidRsaKeyError,
    KeyFileError,
    KeyResolutionError,
)
from jwtcli.crypto.types import (
    AlgorithmFamily,
    FileKey,
    KeyEncoding,
    KeyMaterial,
    KeyReference,
    LiteralKey,
)

logger = get_logger(__name__)

AsymmetricKey = (
    RSAPrivateKey | RSAPublicKey | EllipticCurvePrivateKey | EllipticCurvePublicKey
)

FILE_MARKER = "@"
DEFAULT_ENCODING = KeyEncoding.PEM

_EXTENSION_ENCODINGS = {
    ".pem": KeyEncoding.PEM,
    ".cer": KeyEncoding.PEM,
    ".key": KeyEncoding.PEM,
    ".der": KeyEncoding.DER,
    ".jwk": KeyEncoding.JWK,
}


def parse_key_reference(secret: str) -> KeyReference:
    """Split a ``--secret`` value into inline bytes or a file path."""
    if secret.startswith(FILE_MARKER):
        return FileKey(path=Path(secret[len(FILE_MARKER) :]))
    return LiteralKey(data=secret.encode())


def infer_key_encoding(
    reference: KeyReference, explicit: KeyEncoding | None = None
) -> KeyEncoding:
    """Pick the key encoding without touching the filesystem.

    An explicit encoding always wins; otherwise file references are judged
    by extension and everything else defaults to PEM.
    """
    if explicit is not None:
        return explicit
    if isinstance(reference, FileKey):
        return _EXTENSION_ENCODINGS.get(reference.path.suffix.lower(), DEFAULT_ENCODING)
    return DEFAULT_ENCODING


def read_key_bytes(reference: KeyReference) -> bytes:
    """Return the raw bytes behind a key reference."""
    if isinstance(reference, LiteralKey):
        return reference.data
    try:
        return reference.path.read_bytes()
    except OSError as exc:
        raise KeyFileError(f"Unable to read file {reference.path}: {exc}") from exc


def load_key_material(secret: str, explicit: KeyEncoding | None = None) -> KeyMaterial:
    """Resolve a secret reference into bytes and their encoding."""
    reference = parse_key_reference(secret)
    encoding = infer_key_encoding(reference, explicit)
    logger.debug("key_encoding_inferred", kind=reference.kind, encoding=encoding.value)
    return KeyMaterial(data=read_key_bytes(reference), encoding=encoding)


def family_error(family: AlgorithmFamily) -> type[KeyResolutionError]:
    """Error raised when material does not parse as the family's key type."""
    if family is AlgorithmFamily.ECDSA:
        return InvalidEcdsaKeyError
    return InvalidRsaKeyError


def _key_to_pem(key: AsymmetricKey) -> bytes:
    if isinstance(key, RSAPrivateKey | EllipticCurvePrivateKey):
        return key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    return key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def jwk_to_pem(document: bytes, family: AlgorithmFamily) -> bytes:
    """Convert a single JWK document to PEM for the given key family."""
    error = family_error(family)
    try:
        text = document.decode()
        if family is AlgorithmFamily.ECDSA:
            key = ECAlgorithm.from_jwk(text)
        else:
            key = RSAAlgorithm.from_jwk(text)
    except (jwt.InvalidKeyError, UnicodeDecodeError, ValueError, TypeError) as exc:
        raise error(f"{error.__doc__} ({exc})") from exc
    return _key_to_pem(key)
