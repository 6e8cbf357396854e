"""Encode and decode orchestration around PyJWT."""

import json
from datetime import UTC, datetime

import jwt
from jwt.types import Options

from jwtcli.claims.builder import build_claims, render_iso_timestamps
from jwtcli.crypto.errors import JWKSelectionError
from jwtcli.crypto.keys import load_key_material
from jwtcli.crypto.resolver import resolve_signing_key, resolve_verification_key
from jwtcli.crypto.types import SupportedAlgorithm
from jwtcli.token.types import (
    DecodeOutcome,
    DecodeRequest,
    EncodeRequest,
    Header,
    TokenData,
    TokenResult,
)

_UNVERIFIED_OPTIONS: Options = {
    "verify_signature": False,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
}


def current_timestamp() -> int:
    """Seconds since the epoch, the anchor for ``iat`` and durations."""
    return int(datetime.now(UTC).timestamp())


def build_header(algorithm: SupportedAlgorithm, kid: str | None = None) -> Header:
    """Create the header for a new token."""
    return Header(alg=algorithm, kid=kid)


def encode_token(request: EncodeRequest, now: int | None = None) -> str:
    """Sign the request's claims; collaborator errors propagate unchanged."""
    if now is None:
        now = current_timestamp()
    header = build_header(request.algorithm, request.kid)
    claims = build_claims(request.claims, now)
    material = load_key_material(request.secret, request.key_format)
    signing_key = resolve_signing_key(request.algorithm, material)
    # signed as built, without jwt.encode's registered-claim type checks
    payload = json.dumps(claims, separators=(",", ":"), allow_nan=False).encode()
    return jwt.api_jws.encode(
        payload,
        signing_key.key,
        algorithm=header.alg.value,
        headers=header.extra_fields() or None,
    )


def extract_unverified(token: str) -> TokenData:
    """Read header and claims without checking signature or times."""
    header = jwt.get_unverified_header(token)
    payload = jwt.decode(token, options=_UNVERIFIED_OPTIONS)
    return TokenData(header=header, payload=dict(sorted(payload.items())))


def _verification_options(request: DecodeRequest) -> Options:
    options: Options = {
        "verify_exp": not request.ignore_exp,
        "verify_aud": False,
        "verify_iss": False,
        "verify_sub": False,
        "verify_jti": False,
    }
    if not request.ignore_exp:
        options["require"] = ["exp"]
    return options


def _verified_result(request: DecodeRequest, extracted: TokenData) -> TokenResult:
    declared = request.algorithm.value
    if extracted.header.get("alg") != declared:
        return TokenResult(
            error=jwt.InvalidAlgorithmError("The specified alg value is not allowed")
        )

    kid = extracted.header.get("kid")
    material = load_key_material(request.secret, request.key_format)
    try:
        verification_key = resolve_verification_key(
            request.algorithm, material, kid if isinstance(kid, str) else None
        )
    except JWKSelectionError as exc:
        return TokenResult(error=exc)

    try:
        payload = jwt.decode(
            request.token,
            verification_key.key,
            algorithms=[declared],
            leeway=request.leeway,
            options=_verification_options(request),
        )
    except jwt.PyJWTError as exc:
        return TokenResult(error=exc)
    return TokenResult(
        data=TokenData(header=extracted.header, payload=dict(sorted(payload.items())))
    )


def decode_token(request: DecodeRequest) -> DecodeOutcome:
    """Extract and, when a secret is given, verify a token.

    The declared algorithm must match the token header before any key is
    loaded. Key resolution errors other than JWK Set selection propagate;
    verification errors are captured in ``verified``.
    """
    try:
        extracted = extract_unverified(request.token)
    except jwt.PyJWTError as exc:
        failed = TokenResult(error=exc)
        return DecodeOutcome(unverified=failed, verified=failed)

    if request.secret:
        verified = _verified_result(request, extracted)
    else:
        verified = TokenResult(data=extracted)

    if request.iso_dates:
        extracted = TokenData(
            header=extracted.header, payload=render_iso_timestamps(extracted.payload)
        )
    return DecodeOutcome(unverified=TokenResult(data=extracted), verified=verified)
