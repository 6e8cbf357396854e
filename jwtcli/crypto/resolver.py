"""Algorithm-aware resolution of key material into signing/verification keys."""

import json
from collections.abc import Callable

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ec import (
    EllipticCurvePrivateKey,
    EllipticCurvePublicKey,
)
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from cryptography.hazmat.primitives.asymmetric.types import (
    PrivateKeyTypes,
    PublicKeyTypes,
)

from jwtcli.core.logging import get_logger
from jwtcli.crypto.errors import JWKSelectionError
from jwtcli.crypto.keys import family_error, jwk_to_pem
from jwtcli.crypto.types import (
    AlgorithmFamily,
    KeyEncoding,
    KeyMaterial,
    ResolvedKey,
    SupportedAlgorithm,
)

logger = get_logger(__name__)

_KEY_LOAD_ERRORS = (ValueError, TypeError, UnsupportedAlgorithm)

_PRIVATE_TYPES = {
    AlgorithmFamily.RSA: RSAPrivateKey,
    AlgorithmFamily.ECDSA: EllipticCurvePrivateKey,
}
_PUBLIC_TYPES = {
    AlgorithmFamily.RSA: RSAPublicKey,
    AlgorithmFamily.ECDSA: EllipticCurvePublicKey,
}


def select_jwk(document: bytes, kid: str | None) -> bytes:
    """Reduce a JWK or JWK Set document to a single JWK.

    A plain JWK is returned unchanged whatever the ``kid``. For a set, the
    first entry whose ``kid`` equals ``kid`` is serialized and returned.
    """
    try:
        parsed = json.loads(document)
    except ValueError:
        # not JSON at all; let the JWK parser report it
        return document
    keys = parsed.get("keys") if isinstance(parsed, dict) else None
    if not isinstance(keys, list):
        return document
    if kid is None:
        raise JWKSelectionError("A JWK Set was provided but the token has no kid")
    for entry in keys:
        if isinstance(entry, dict) and entry.get("kid") == kid:
            logger.debug("jwk_selected", kid=kid)
            return json.dumps(entry).encode()
    raise JWKSelectionError(f"No key with kid {kid!r} in the JWK Set")


def _load_private(data: bytes, encoding: KeyEncoding) -> PrivateKeyTypes:
    if encoding is KeyEncoding.DER:
        return serialization.load_der_private_key(data, password=None)
    return serialization.load_pem_private_key(data, password=None)


def _public_from_private(data: bytes, encoding: KeyEncoding) -> PublicKeyTypes:
    return _load_private(data, encoding).public_key()


def _public_from_certificate(data: bytes, encoding: KeyEncoding) -> PublicKeyTypes:
    if encoding is KeyEncoding.DER:
        return x509.load_der_x509_certificate(data).public_key()
    return x509.load_pem_x509_certificate(data).public_key()


def _load_public(data: bytes, encoding: KeyEncoding) -> PublicKeyTypes:
    if encoding is KeyEncoding.DER:
        return serialization.load_der_public_key(data)
    return serialization.load_pem_public_key(data)


_PUBLIC_LOADERS: tuple[Callable[[bytes, KeyEncoding], PublicKeyTypes], ...] = (
    _load_public,
    _public_from_private,
    _public_from_certificate,
)


def _asymmetric_key(
    family: AlgorithmFamily, material: KeyMaterial, kid: str | None, *, private: bool
) -> ResolvedKey:
    error = family_error(family)
    data, encoding = material.data, material.encoding
    if encoding is KeyEncoding.JWK:
        data = jwk_to_pem(select_jwk(data, kid), family)
        encoding = KeyEncoding.PEM
    elif encoding is KeyEncoding.RAW:
        raise error(f"{error.__doc__} (raw bytes are only usable as an HMAC secret)")

    key: PrivateKeyTypes | PublicKeyTypes | None = None
    last_exc: Exception | None = None
    loaders = (_load_private,) if private else _PUBLIC_LOADERS
    for loader in loaders:
        try:
            key = loader(data, encoding)
            break
        except _KEY_LOAD_ERRORS as exc:
            last_exc = exc
    if key is None:
        raise error(f"{error.__doc__} ({last_exc})") from last_exc

    expected = _PRIVATE_TYPES[family] if private else _PUBLIC_TYPES[family]
    if not isinstance(key, expected):
        raise error(f"{error.__doc__} (got {type(key).__name__})")
    return ResolvedKey(family=family, encoding=material.encoding, key=key)


def resolve_signing_key(
    algorithm: SupportedAlgorithm, material: KeyMaterial, kid: str | None = None
) -> ResolvedKey:
    """Produce the key ``algorithm`` signs with."""
    family = algorithm.family
    if family is AlgorithmFamily.HMAC:
        return ResolvedKey(family=family, encoding=KeyEncoding.RAW, key=material.data)
    return _asymmetric_key(family, material, kid, private=True)


def resolve_verification_key(
    algorithm: SupportedAlgorithm, material: KeyMaterial, kid: str | None = None
) -> ResolvedKey:
    """Produce the key ``algorithm`` verifies with.

    ``algorithm`` is the caller's declared algorithm, never the token's own
    header; the header only contributes ``kid`` for JWK Set selection.
    """
    family = algorithm.family
    if family is AlgorithmFamily.HMAC:
        return ResolvedKey(family=family, encoding=KeyEncoding.RAW, key=material.data)
    return _asymmetric_key(family, material, kid, private=False)
