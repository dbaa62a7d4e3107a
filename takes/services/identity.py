from __future__ import annotations

import secrets
from collections.abc import Mapping
from typing import Protocol

from starlette.requests import Request


class IdentityProvider(Protocol):
    def identify(self, request: Request) -> str | None:
        """Caller identity (e.g. an email) or None for anonymous callers."""


def bearer_token(request: Request) -> str | None:
    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class StaticTokenIdentityProvider:
    """Maps configured bearer tokens to identities."""

    def __init__(self, tokens: Mapping[str, str]) -> None:
        self._tokens = dict(tokens)

    def identify(self, request: Request) -> str | None:
        token = bearer_token(request)
        if token is None:
            return None
        for known, identity in self._tokens.items():
            if secrets.compare_digest(known.encode(), token.encode()):
                return identity
        return None


def is_admin(identity: str | None, admin_email: str | None) -> bool:
    if not identity or not admin_email:
        return False
    return identity.strip().lower() == admin_email.strip().lower()
