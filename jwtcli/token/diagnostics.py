"""Human-readable messages for verification and key errors."""

import jwt
from jwt.exceptions import InvalidSubjectError

from jwtcli.crypto.errors import InvalidEcdsaKeyError, InvalidRsaKeyError

_EXPIRED = (
    "The token has expired (or the `exp` claim is not set). "
    "This error can be ignored via the `--ignore-exp` parameter."
)

# most specific first: several of these subclass each other
_MESSAGES: tuple[tuple[type[Exception], str], ...] = (
    (jwt.InvalidSignatureError, "The JWT provided has an invalid signature"),
    (InvalidRsaKeyError, "The secret provided isn't a valid RSA key"),
    (InvalidEcdsaKeyError, "The secret provided isn't a valid ECDSA key"),
    (jwt.ExpiredSignatureError, _EXPIRED),
    (
        jwt.ImmatureSignatureError,
        "The `nbf` claim is in the future which isn't allowed",
    ),
    (jwt.InvalidIssuerError, "The token issuer is invalid"),
    (jwt.InvalidAudienceError, "The token audience is invalid"),
    (InvalidSubjectError, "The token subject is invalid"),
    (
        jwt.InvalidAlgorithmError,
        "The JWT provided has a different signing algorithm than the one you provided",
    ),
    (jwt.DecodeError, "The JWT provided is invalid"),
)


def describe_error(error: Exception) -> str:
    """Map an error to its diagnostic, falling back to the raw detail."""
    if isinstance(error, jwt.MissingRequiredClaimError) and error.claim == "exp":
        return _EXPIRED
    for error_type, message in _MESSAGES:
        if isinstance(error, error_type):
            return message
    return f"The JWT provided is invalid because {type(error).__name__}: {error}"
