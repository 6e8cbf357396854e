"""Merging of heterogeneous claim inputs into one canonical claim set."""

from collections.abc import Iterable
from datetime import UTC, datetime

from pydantic import BaseModel, JsonValue

from jwtcli.claims.timestamps import parse_timestamp_claim
from jwtcli.claims.types import (
    TIMESTAMP_CLAIMS,
    ClaimEntry,
    ClaimOutcome,
    ClaimRejected,
)
from jwtcli.claims.values import (
    parse_claim_object,
    parse_claim_pair,
    parse_claim_value,
)
from jwtcli.core.logging import get_logger

logger = get_logger(__name__)

ClaimSet = dict[str, JsonValue]


class ClaimInputs(BaseModel):
    """Everything the command line can contribute to a payload."""

    no_iat: bool = False
    expires: str | None = None
    issuer: str | None = None
    subject: str | None = None
    audience: str | None = None
    jwt_id: str | None = None
    not_before: str | None = None
    pairs: list[str] = []
    json_payload: str | None = None


def _standard_claims(inputs: ClaimInputs, now: int) -> list[ClaimOutcome]:
    outcomes: list[ClaimOutcome] = []
    if not inputs.no_iat:
        outcomes.append(ClaimEntry(name="iat", value=now))
    if inputs.expires is not None:
        outcomes.append(parse_timestamp_claim("exp", inputs.expires, now))
    for name, raw in (
        ("iss", inputs.issuer),
        ("sub", inputs.subject),
        ("aud", inputs.audience),
        ("jti", inputs.jwt_id),
    ):
        if raw is not None:
            outcomes.append(parse_claim_value(name, raw))
    if inputs.not_before is not None:
        outcomes.append(parse_timestamp_claim("nbf", inputs.not_before, now))
    return outcomes


def merge_claims(outcomes: Iterable[ClaimOutcome]) -> ClaimSet:
    """Fold outcomes in order; later names win, rejected inputs are dropped."""
    merged: ClaimSet = {}
    for outcome in outcomes:
        if isinstance(outcome, ClaimRejected):
            logger.warning(
                "claim_dropped",
                claim=outcome.name,
                raw=outcome.raw,
                reason=outcome.reason,
            )
            continue
        merged[outcome.name] = outcome.value
    return dict(sorted(merged.items()))


def build_claims(inputs: ClaimInputs, now: int) -> ClaimSet:
    """Build the claim set in precedence order.

    Order: ``iat``, ``exp``, ``iss``/``sub``/``aud``/``jti``/``nbf``, then
    ``key=value`` pairs as given, then the bulk JSON object. The result is
    sorted by claim name.
    """
    outcomes = _standard_claims(inputs, now)
    outcomes.extend(parse_claim_pair(pair) for pair in inputs.pairs)
    if inputs.json_payload is not None:
        outcomes.extend(parse_claim_object(inputs.json_payload))
    return merge_claims(outcomes)


def render_iso_timestamps(claims: ClaimSet) -> ClaimSet:
    """Return a copy with integer ``iat``/``nbf``/``exp`` as ISO-8601 strings."""
    rendered = dict(claims)
    for name in TIMESTAMP_CLAIMS:
        value = rendered.get(name)
        if not isinstance(value, int) or isinstance(value, bool):
            continue
        try:
            rendered[name] = datetime.fromtimestamp(value, UTC).isoformat()
        except (OverflowError, OSError, ValueError):
            # out of datetime's range; keep the number
            continue
    return rendered
