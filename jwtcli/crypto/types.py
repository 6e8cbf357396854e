"""Type definitions for key references, encodings and resolved keys."""

from enum import StrEnum
from pathlib import Path
from typing import Annotated, Literal

from cryptography.hazmat.primitives.asymmetric.ec import (
    EllipticCurvePrivateKey,
    EllipticCurvePublicKey,
)
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from pydantic import BaseModel, ConfigDict, Field


class KeyEncoding(StrEnum):
    """How raw key bytes are interpreted."""

    RAW = "raw"
    PEM = "pem"
    DER = "der"
    JWK = "jwk"


class AlgorithmFamily(StrEnum):
    """Key type required by a signing algorithm."""

    HMAC = "hmac"
    RSA = "rsa"
    ECDSA = "ecdsa"


class SupportedAlgorithm(StrEnum):
    """Signing algorithms accepted on the command line."""

    HS256 = "HS256"
    HS384 = "HS384"
    HS512 = "HS512"
    RS256 = "RS256"
    RS384 = "RS384"
    RS512 = "RS512"
    PS256 = "PS256"
    PS384 = "PS384"
    PS512 = "PS512"
    ES256 = "ES256"
    ES384 = "ES384"

    @property
    def family(self) -> AlgorithmFamily:
        """Key family this algorithm signs with."""
        if self.value.startswith("HS"):
            return AlgorithmFamily.HMAC
        if self.value.startswith("ES"):
            return AlgorithmFamily.ECDSA
        return AlgorithmFamily.RSA


class LiteralKey(BaseModel):
    """Key material given inline on the command line."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["literal"] = "literal"
    data: bytes


class FileKey(BaseModel):
    """Key material to be read from a file (``@path``)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    path: Path


KeyReference = Annotated[LiteralKey | FileKey, Field(discriminator="kind")]


class KeyMaterial(BaseModel):
    """Raw key bytes plus the encoding they should be read with."""

    data: bytes
    encoding: KeyEncoding


KeyObject = (
    bytes
    | RSAPrivateKey
    | RSAPublicKey
    | EllipticCurvePrivateKey
    | EllipticCurvePublicKey
)


class ResolvedKey(BaseModel):
    """Algorithm-ready key, used for a single sign or verify call."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    family: AlgorithmFamily
    encoding: KeyEncoding
    key: KeyObject
