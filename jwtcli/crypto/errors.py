"""Key resolution errors, layered on PyJWT's exception hierarchy."""

import jwt


class KeyResolutionError(jwt.InvalidKeyError):
    """Key material could not be turned into a usable key."""


class KeyFileError(KeyResolutionError):
    """An ``@path`` secret could not be read."""


class InvalidRsaKeyError(KeyResolutionError):
    """The secret provided isn't a valid RSA key."""


class InvalidEcdsaKeyError(KeyResolutionError):
    """The secret provided isn't a valid ECDSA key."""


class JWKSelectionError(KeyResolutionError, jwt.InvalidSignatureError):
    """No single JWK could be picked out of a JWK Set.

    Also an invalid-signature error: the verifying key cannot be located.
    """
