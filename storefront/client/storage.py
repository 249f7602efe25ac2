import json
import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_FILE = os.path.join("~", ".storefront", "session.json")


class TokenStore:
    """Keeps the session token on disk between runs."""

    def __init__(self, path: Optional[str] = None):
        self.path = os.path.expanduser(
            path or os.getenv("STOREFRONT_TOKEN_FILE", DEFAULT_TOKEN_FILE)
        )

    def load(self) -> Optional[str]:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable token file %s: %s", self.path, exc)
            return None

        token = data.get("token") if isinstance(data, dict) else None
        return token or None

    def save(self, token: str) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump({"token": token}, fh)

    def clear(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            return
