"""Resolution of expiry/not-before inputs into UNIX timestamps."""

from pytimeparse.timeparse import timeparse

from jwtcli.claims.types import ClaimEntry, ClaimOutcome, ClaimRejected


def resolve_timestamp(raw: str, now: int) -> int | None:
    """Return an absolute UNIX timestamp for ``raw`` or None.

    A bare non-negative integer (optionally ``+``-signed) is taken as-is.
    Anything else is parsed as a duration (``"30 min"``, ``"+2h"``,
    ``"1d 3h"``) and added to ``now``.
    """
    text = raw.strip()
    digits = text.removeprefix("+")
    if digits.isdigit() and digits.isascii():
        return int(digits)
    offset = timeparse(text)
    if offset is None:
        return None
    return now + int(offset)


def parse_timestamp_claim(name: str, raw: str, now: int) -> ClaimOutcome:
    """Build a time claim (``exp``/``nbf``) from a timestamp or duration."""
    timestamp = resolve_timestamp(raw, now)
    if timestamp is None:
        return ClaimRejected(
            name=name,
            raw=raw,
            reason="must be a UNIX timestamp or duration string",
        )
    return ClaimEntry(name=name, value=timestamp)
