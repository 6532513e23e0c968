"""Holds the API secret and renders the Authorization header from it."""

import base64
import logging

from tinyshrink.domain.errors import InvalidCredentials

logger = logging.getLogger(__name__)


class CredentialHolder:
    """Immutable owner of the API key.

    The key is validated once at construction; afterwards the header value
    is a pure function of it. `repr` and `str` never expose the key.
    """

    __slots__ = ("_secret", "_header")

    def __init__(self, secret: str):
        if not isinstance(secret, str):
            raise InvalidCredentials("API key must be a string.")
        secret = secret.strip()
        if not secret:
            raise InvalidCredentials("API key invalid or missing.")
        if any(ch.isspace() or not ch.isprintable() for ch in secret):
            raise InvalidCredentials("API key contains whitespace or control characters.")
        token = base64.b64encode(f"api:{secret}".encode("utf-8")).decode("ascii")
        object.__setattr__(self, "_secret", secret)
        object.__setattr__(self, "_header", f"Basic {token}")
        logger.debug("Credentials initialized.")

    def __setattr__(self, name, value):
        raise AttributeError("CredentialHolder is immutable.")

    def authorization_header(self) -> str:
        return self._header

    def __repr__(self) -> str:
        return "CredentialHolder(secret=***)"

    __str__ = __repr__
