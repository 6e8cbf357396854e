"""Tests for the encode/decode pipeline."""

import json

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from conftest import ec_jwk, private_pem, public_pem, rsa_jwk
from jwtcli.claims.builder import ClaimInputs
from jwtcli.crypto.errors import InvalidRsaKeyError, JWKSelectionError, KeyFileError
from jwtcli.crypto.types import SupportedAlgorithm
from jwtcli.token.pipeline import (
    build_header,
    current_timestamp,
    decode_token,
    encode_token,
    extract_unverified,
)
from jwtcli.token.types import DecodeRequest, EncodeRequest, Header

SECRET = "foo"


def _encode(alg: str = "HS256", secret: str = SECRET, **claims) -> str:
    return encode_token(
        EncodeRequest(
            algorithm=SupportedAlgorithm(alg),
            secret=secret,
            kid=claims.pop("kid", None),
            claims=ClaimInputs(expires="+30 min", **claims),
        )
    )


def _decode(token: str, alg: str = "HS256", secret: str = SECRET, **options):
    return decode_token(
        DecodeRequest(
            token=token, algorithm=SupportedAlgorithm(alg), secret=secret, **options
        )
    )


class TestBuildHeader:
    """Tests for header construction."""

    def test_kid_included(self) -> None:
        header = build_header(SupportedAlgorithm.RS256, "k1")
        assert header.extra_fields() == {"kid": "k1"}

    def test_no_kid(self) -> None:
        assert build_header(SupportedAlgorithm.HS256).extra_fields() == {}

    def test_only_alg_and_kid_fields(self) -> None:
        assert set(Header.model_fields) == {"alg", "kid"}


class TestEncodeToken:
    """Tests for signing."""

    def test_kid_in_header(self) -> None:
        token = _encode(kid="k1")
        header = jwt.get_unverified_header(token)
        assert header["kid"] == "k1"
        assert header["alg"] == "HS256"

    def test_uses_supplied_now(self) -> None:
        request = EncodeRequest(
            algorithm=SupportedAlgorithm.HS256,
            secret=SECRET,
            claims=ClaimInputs(expires="+30 min"),
        )
        token = encode_token(request, now=1_000)
        payload = extract_unverified(token).payload
        assert payload == {"exp": 2_800, "iat": 1_000}

    def test_numeric_issuer_is_signed_as_built(self) -> None:
        outcome = _decode(_encode(issuer="42", pairs=["sub=7"]))
        assert outcome.verified.ok
        assert outcome.verified.data.payload["iss"] == 42
        assert outcome.verified.data.payload["sub"] == 7

    def test_out_of_range_number_is_encoded_as_string(self) -> None:
        payload = extract_unverified(_encode(pairs=["big=1e400"])).payload
        assert payload["big"] == "1e400"

    def test_missing_key_file(self, tmp_path) -> None:
        with pytest.raises(KeyFileError):
            _encode(secret=f"@{tmp_path / 'nope.key'}")

    def test_bad_rsa_key(self) -> None:
        with pytest.raises(InvalidRsaKeyError):
            _encode(alg="RS256", secret="not a key")

    def test_jwk_set_cannot_sign(self, write_key, rsa_key: rsa.RSAPrivateKey) -> None:
        secret = write_key("set.jwk", {"keys": [rsa_jwk(rsa_key, kid="a")]})
        with pytest.raises(JWKSelectionError):
            _encode(alg="RS256", secret=secret)


class TestHmacRoundTrip:
    """Tests for HMAC encode/decode identity."""

    @pytest.mark.parametrize("alg", ["HS256", "HS384", "HS512"])
    def test_claims_survive(self, alg: str) -> None:
        token = _encode(alg=alg, pairs=["role=admin", "n=42"], subject="alice")
        outcome = _decode(token, alg=alg)
        assert outcome.verified.ok
        payload = outcome.verified.data.payload
        assert payload["role"] == "admin"
        assert payload["n"] == 42
        assert payload["sub"] == "alice"
        assert payload["exp"] - payload["iat"] == 1800

    def test_integer_subject_verifies(self) -> None:
        outcome = _decode(_encode(pairs=["sub=42"]))
        assert outcome.verified.ok
        assert outcome.verified.data.payload["sub"] == 42

    def test_audience_not_checked(self) -> None:
        outcome = _decode(_encode(audience="svc"))
        assert outcome.verified.ok


class TestAsymmetricRoundTrip:
    """Tests for RSA and ECDSA tokens."""

    @pytest.mark.parametrize("alg", ["RS256", "PS512"])
    def test_rsa_pem(self, alg: str, write_key, rsa_key: rsa.RSAPrivateKey) -> None:
        signing = write_key("private.pem", private_pem(rsa_key))
        verifying = write_key("public.pem", public_pem(rsa_key))
        outcome = _decode(_encode(alg=alg, secret=signing), alg=alg, secret=verifying)
        assert outcome.verified.ok

    def test_ec_jwk(self, write_key, ec_key: ec.EllipticCurvePrivateKey) -> None:
        signing = write_key("private.jwk", ec_jwk(ec_key))
        verifying = write_key("public.jwk", ec_jwk(ec_key.public_key()))
        token = _encode(alg="ES256", secret=signing)
        outcome = _decode(token, alg="ES256", secret=verifying)
        assert outcome.verified.ok

    def test_wrong_key_rejected(
        self, write_key, rsa_key: rsa.RSAPrivateKey, other_rsa_key: rsa.RSAPrivateKey
    ) -> None:
        token = _encode(alg="RS256", secret=write_key("a.pem", private_pem(rsa_key)))
        outcome = _decode(
            token, alg="RS256", secret=write_key("b.pem", public_pem(other_rsa_key))
        )
        assert isinstance(outcome.verified.error, jwt.InvalidSignatureError)
        assert outcome.unverified.ok


class TestJwkSetVerification:
    """Tests for kid-driven JWK Set selection on decode."""

    @pytest.fixture
    def jwk_set(
        self, write_key, rsa_key: rsa.RSAPrivateKey, other_rsa_key: rsa.RSAPrivateKey
    ) -> str:
        return write_key(
            "set.jwk",
            {
                "keys": [
                    rsa_jwk(other_rsa_key.public_key(), kid="a"),
                    rsa_jwk(rsa_key.public_key(), kid="b"),
                ]
            },
        )

    def _token(self, write_key, rsa_key: rsa.RSAPrivateKey, kid: str | None) -> str:
        secret = write_key("signing.pem", private_pem(rsa_key))
        return _encode(alg="RS256", secret=secret, kid=kid)

    def test_selects_by_header_kid(self, write_key, jwk_set: str, rsa_key) -> None:
        token = self._token(write_key, rsa_key, "b")
        outcome = _decode(token, alg="RS256", secret=jwk_set)
        assert outcome.verified.ok

    def test_unknown_kid(self, write_key, jwk_set: str, rsa_key) -> None:
        token = self._token(write_key, rsa_key, "c")
        outcome = _decode(token, alg="RS256", secret=jwk_set)
        assert isinstance(outcome.verified.error, JWKSelectionError)
        assert outcome.unverified.ok

    def test_missing_kid(self, write_key, jwk_set: str, rsa_key) -> None:
        token = self._token(write_key, rsa_key, None)
        outcome = _decode(token, alg="RS256", secret=jwk_set)
        assert isinstance(outcome.verified.error, jwt.InvalidSignatureError)


class TestDecodeToken:
    """Tests for the two-result decode."""

    def test_algorithm_mismatch(self) -> None:
        outcome = _decode(_encode(alg="HS256"), alg="HS384")
        assert isinstance(outcome.verified.error, jwt.InvalidAlgorithmError)
        assert outcome.unverified.ok

    def test_mismatch_across_families(self, write_key) -> None:
        secret = write_key("k.pem", b"x")
        outcome = _decode(_encode(alg="HS256"), alg="RS256", secret=secret)
        assert isinstance(outcome.verified.error, jwt.InvalidAlgorithmError)

    def test_header_alg_does_not_pick_key_type(
        self, rsa_key: rsa.RSAPrivateKey
    ) -> None:
        # RSA-signed token checked as HS256 with the public key as secret
        claims = {"exp": current_timestamp() + 60}
        token = jwt.encode(claims, rsa_key, algorithm="RS256")
        outcome = _decode(token, alg="HS256", secret=public_pem(rsa_key).decode())
        assert isinstance(outcome.verified.error, jwt.InvalidAlgorithmError)

    def test_wrong_secret(self) -> None:
        outcome = _decode(_encode(), secret="bar")
        assert isinstance(outcome.verified.error, jwt.InvalidSignatureError)

    def test_expired_token_still_displayed(self) -> None:
        token = jwt.encode({"exp": 1, "role": "admin"}, SECRET, algorithm="HS256")
        outcome = _decode(token)
        assert isinstance(outcome.verified.error, jwt.ExpiredSignatureError)
        assert outcome.unverified.data.payload["role"] == "admin"

    def test_ignore_exp(self) -> None:
        token = jwt.encode({"exp": 1}, SECRET, algorithm="HS256")
        assert _decode(token, ignore_exp=True).verified.ok

    def test_exp_required(self) -> None:
        token = jwt.encode({"role": "admin"}, SECRET, algorithm="HS256")
        outcome = _decode(token)
        assert isinstance(outcome.verified.error, jwt.MissingRequiredClaimError)

    def test_leeway(self) -> None:
        token = jwt.encode({"exp": current_timestamp() - 10}, SECRET, algorithm="HS256")
        assert _decode(token, leeway=60).verified.ok

    def test_immature(self) -> None:
        now = current_timestamp()
        claims = {"exp": now + 7200, "nbf": now + 3600}
        token = jwt.encode(claims, SECRET, algorithm="HS256")
        outcome = _decode(token)
        assert isinstance(outcome.verified.error, jwt.ImmatureSignatureError)

    def test_empty_secret_skips_verification(self) -> None:
        header, payload, _ = _encode().split(".")
        forged = f"{header}.{payload}.c2lnbmF0dXJl"
        outcome = _decode(forged, secret="")
        assert outcome.verified.ok
        assert outcome.unverified.ok

    def test_malformed_token(self) -> None:
        outcome = _decode("not-a-token", secret="")
        assert isinstance(outcome.unverified.error, jwt.DecodeError)
        assert isinstance(outcome.verified.error, jwt.DecodeError)
        assert outcome.unverified.data is None

    def test_iso_dates_only_affect_display(self) -> None:
        outcome = _decode(_encode(), iso_dates=True)
        assert outcome.verified.ok
        assert isinstance(outcome.verified.data.payload["exp"], int)
        assert isinstance(outcome.unverified.data.payload["exp"], str)
        assert outcome.unverified.data.payload["exp"].endswith("+00:00")

    def test_unverified_payload_is_sorted(self) -> None:
        token = jwt.encode({"z": 1, "a": 2}, SECRET, algorithm="HS256")
        assert list(extract_unverified(token).payload) == ["a", "z"]

    def test_key_errors_propagate(self) -> None:
        token = jwt.encode({"exp": current_timestamp() + 60}, SECRET, algorithm="HS256")
        forged_header = json.dumps({"alg": "RS256", "typ": "JWT"}).encode()
        forged = ".".join(
            [jwt.utils.base64url_encode(forged_header).decode(), *token.split(".")[1:]]
        )
        with pytest.raises(InvalidRsaKeyError):
            _decode(forged, alg="RS256", secret="not a key")
