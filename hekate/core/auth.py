"""Bearer token persistence.

Mirrors the mobile app's key-value storage: the token lives under
``auth_token`` and the cached profile under ``user_data``, both in one
JSON file on disk.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from hekate.core.config import settings

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
USER_DATA_KEY = "user_data"


class TokenStore:
    """
    File-backed store for the authentication token.

    A missing or unreadable file reads as "logged out"; it never raises
    on read so a corrupt store cannot lock the user out of logging in again.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else settings.TOKEN_STORE_PATH

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Token store at {self.path} unreadable, treating as empty: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    def get_token(self) -> Optional[str]:
        """Return the stored token, or None when logged out."""
        token = self._read().get(TOKEN_KEY)
        return token or None

    def set_token(self, token: str) -> None:
        """Persist a freshly issued token."""
        data = self._read()
        data[TOKEN_KEY] = token
        self._write(data)

    def get_user_data(self) -> Optional[Dict[str, Any]]:
        return self._read().get(USER_DATA_KEY)

    def set_user_data(self, user_data: Dict[str, Any]) -> None:
        data = self._read()
        data[USER_DATA_KEY] = user_data
        self._write(data)

    def clear(self) -> None:
        """Remove the token and cached profile."""
        data = self._read()
        data.pop(TOKEN_KEY, None)
        data.pop(USER_DATA_KEY, None)
        self._write(data)
