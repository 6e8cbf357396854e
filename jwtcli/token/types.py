"""Type definitions for encode/decode requests and their outcomes."""

from pydantic import BaseModel, ConfigDict, JsonValue

from jwtcli.claims.builder import ClaimInputs
from jwtcli.crypto.types import KeyEncoding, SupportedAlgorithm


class Header(BaseModel):
    """JOSE header written on encode."""

    alg: SupportedAlgorithm
    kid: str | None = None

    def extra_fields(self) -> dict[str, str]:
        """Fields beyond ``alg`` for the signing library's ``headers``."""
        return self.model_dump(mode="json", exclude={"alg"}, exclude_none=True)


class TokenData(BaseModel):
    """Header and claims of a token."""

    header: dict[str, JsonValue]
    payload: dict[str, JsonValue]


class TokenResult(BaseModel):
    """Either token data or the error that prevented producing it."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    data: TokenData | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.data is not None


class DecodeOutcome(BaseModel):
    """Unverified extraction and verification, kept independent.

    Display uses ``unverified``; the exit status depends on ``verified``.
    """

    unverified: TokenResult
    verified: TokenResult


class EncodeRequest(BaseModel):
    """Everything needed to sign one token."""

    algorithm: SupportedAlgorithm
    secret: str
    kid: str | None = None
    key_format: KeyEncoding | None = None
    claims: ClaimInputs = ClaimInputs()


class DecodeRequest(BaseModel):
    """Everything needed to inspect and verify one token."""

    token: str
    algorithm: SupportedAlgorithm
    secret: str = ""
    key_format: KeyEncoding | None = None
    iso_dates: bool = False
    ignore_exp: bool = False
    leeway: int = 0
