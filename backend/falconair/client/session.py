"""
Explicit client session holding the bearer token.

Set on login, cleared on logout, read for every request. One session per
signed-in user; nothing is stored at module level.
"""

from typing import Optional


class ClientSession:
    def __init__(self, token: Optional[str] = None):
        self._token = token
        self.user: Optional[dict] = None

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def set_token(self, token: str, user: Optional[dict] = None) -> None:
        self._token = token
        self.user = user

    def clear(self) -> None:
        self._token = None
        self.user = None

    def auth_headers(self) -> dict:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}
