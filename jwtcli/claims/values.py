"""JSON-first parsing of textual claim values."""

import json
import math
from typing import NoReturn

from jwtcli.claims.types import ClaimEntry, ClaimOutcome, ClaimRejected

PAIR_SEPARATOR = "="


def _reject_constant(name: str) -> NoReturn:
    raise ValueError(f"{name} is not valid JSON")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"{text} is out of range for a JSON number")
    return value


def _loads(raw: str) -> object:
    return json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)


def parse_claim_value(name: str, raw: str) -> ClaimOutcome:
    """Parse raw text as JSON, falling back to a JSON string literal.

    ``42`` becomes a number, ``true`` a boolean and ``hello`` the string
    ``"hello"``. Text that is neither valid JSON nor embeddable in a JSON
    string (e.g. containing an unescaped quote) is rejected.
    """
    try:
        return ClaimEntry(name=name, value=_loads(raw))
    except ValueError:
        pass
    try:
        return ClaimEntry(name=name, value=_loads(f'"{raw}"'))
    except ValueError as exc:
        return ClaimRejected(name=name, raw=raw, reason=str(exc))


def split_claim_pair(pair: str) -> tuple[str, str]:
    """Split ``name=value``; exactly one separator and a non-empty name."""
    if pair.count(PAIR_SEPARATOR) != 1:
        raise ValueError("payloads must have a key and value in the form key=value")
    name, raw = pair.split(PAIR_SEPARATOR)
    if not name:
        raise ValueError("payload key must not be empty")
    return name, raw


def parse_claim_pair(pair: str) -> ClaimOutcome:
    """Parse a validated ``name=value`` argument."""
    name, raw = split_claim_pair(pair)
    return parse_claim_value(name, raw)


def parse_claim_object(raw_json: str) -> list[ClaimEntry]:
    """Decompose a bulk JSON object into entries, keeping key order."""
    document = _loads(raw_json)
    if not isinstance(document, dict):
        raise ValueError("the JSON payload must be an object")
    return [ClaimEntry(name=name, value=value) for name, value in document.items()]
