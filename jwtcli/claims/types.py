"""Type definitions for claim ingestion."""

from pydantic import BaseModel, ConfigDict, Field, JsonValue

TIMESTAMP_CLAIMS = ("iat", "nbf", "exp")


class ClaimEntry(BaseModel):
    """One named claim value ready to be merged into a claim set."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    value: JsonValue


class ClaimRejected(BaseModel):
    """A claim input that failed every parse attempt."""

    model_config = ConfigDict(frozen=True)

    name: str
    raw: str
    reason: str


ClaimOutcome = ClaimEntry | ClaimRejected
