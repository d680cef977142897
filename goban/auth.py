"""Per-game mutation credentials.

Whoever creates a game receives a credential derived from the game id with
a service secret (HMAC-SHA256). Anyone holding it may mutate that game;
reading never needs it.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Optional

from .errors import AuthenticationInvalid, AuthenticationRequired


class HmacAuthorizer:
    """Stateless issuer and checker of game credentials."""

    def __init__(self, secret_key: str):
        self._key = secret_key.encode("utf-8")

    def issue(self, game_id: str) -> str:
        return hmac.new(self._key, game_id.encode("utf-8"), hashlib.sha256).hexdigest()

    def is_authorized(self, game_id: str, credential: Optional[str]) -> bool:
        if not credential:
            return False
        return hmac.compare_digest(self.issue(game_id), credential)

    def require(self, game_id: str, credential: Optional[str]) -> None:
        """Raise unless ``credential`` authorizes mutating ``game_id``."""
        if not credential:
            raise AuthenticationRequired("A game credential is required")
        if not self.is_authorized(game_id, credential):
            raise AuthenticationInvalid(
                "Credential does not match this game",
                context={"game_id": game_id},
            )
