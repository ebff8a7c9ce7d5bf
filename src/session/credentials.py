"""
Session-scoped calendar credentials

The credential pair is written once per session (OAuth redirect or restore
from session storage) and only read afterwards.
"""
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from config.settings import Config

logger = logging.getLogger(__name__)

REDIRECT_PARAMS = ("access_token", "refresh_token", "authenticated")


class CredentialPair:
    """Access/refresh token pair issued by the OAuth provider"""

    __slots__ = ("access_token", "refresh_token")

    def __init__(self, access_token: str, refresh_token: Optional[str] = None):
        object.__setattr__(self, "access_token", access_token)
        object.__setattr__(self, "refresh_token", refresh_token or None)

    def __setattr__(self, name, value):
        raise AttributeError("CredentialPair is immutable")

    def __eq__(self, other):
        if not isinstance(other, CredentialPair):
            return NotImplemented
        return (self.access_token, self.refresh_token) == (other.access_token, other.refresh_token)

    def __hash__(self):
        return hash((self.access_token, self.refresh_token))

    def __repr__(self):
        # never log the tokens themselves
        return f"CredentialPair(access_token=***, refresh_token={'***' if self.refresh_token else None})"

    def to_dict(self) -> Dict[str, str]:
        data = {"access_token": self.access_token}
        if self.refresh_token:
            data["refresh_token"] = self.refresh_token
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["CredentialPair"]:
        if not data or not data.get("access_token"):
            return None
        return cls(data["access_token"], data.get("refresh_token"))


class SessionStorage:
    """
    String key/value storage that lives as long as one client session.

    In-memory by default; with a path it is mirrored to a JSON file so a
    restarted console session can restore its tokens.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self._lock = threading.Lock()
        self._items: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        if not self.path or not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable session storage {self.path}: {e}")
            return {}
        return {str(k): str(v) for k, v in data.items()} if isinstance(data, dict) else {}

    def _flush(self):
        if not self.path:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self._items, f)
        os.chmod(self.path, 0o600)

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str):
        with self._lock:
            self._items[key] = value
            self._flush()

    def remove_item(self, key: str):
        with self._lock:
            self._items.pop(key, None)
            self._flush()

    def clear(self):
        with self._lock:
            self._items.clear()
            if self.path and self.path.exists():
                self.path.unlink()


class CredentialStore:
    """Holds the session's credential pair, backed by session storage"""

    def __init__(self, storage: SessionStorage = None, key: str = None):
        self.storage = storage or SessionStorage()
        self.key = key or Config.TOKEN_STORAGE_KEY
        self._credentials: Optional[CredentialPair] = None

    @property
    def credentials(self) -> Optional[CredentialPair]:
        return self._credentials

    @property
    def is_authenticated(self) -> bool:
        return self._credentials is not None

    def set(self, credentials: CredentialPair):
        if self._credentials is not None and self._credentials != credentials:
            raise ValueError("Credentials are already set for this session")
        self._credentials = credentials
        self.storage.set_item(self.key, json.dumps(credentials.to_dict()))
        logger.info("🔑 Calendar credentials stored for this session")

    def restore(self) -> Optional[CredentialPair]:
        """Load the pair cached in session storage, if any"""
        if self._credentials is not None:
            return self._credentials

        stored = self.storage.get_item(self.key)
        if not stored:
            return None
        try:
            credentials = CredentialPair.from_dict(json.loads(stored))
        except json.JSONDecodeError:
            logger.warning("Discarding malformed cached credentials")
            return None

        self._credentials = credentials
        if credentials:
            logger.info("🔑 Calendar credentials restored from session storage")
        return credentials

    def consume_redirect(self, url: str) -> Tuple[Optional[CredentialPair], str]:
        """
        Take tokens out of the OAuth callback redirect URL.

        Returns the credential pair (or None when the redirect does not carry
        one) and the URL with the token parameters erased.
        """
        parts = urlsplit(url)
        params = parse_qs(parts.query)

        def first(name):
            values = params.get(name)
            return values[0] if values else None

        credentials = None
        if first("authenticated") == "true" and first("access_token"):
            credentials = CredentialPair(first("access_token"), first("refresh_token"))
            self.set(credentials)

        remaining = {k: v for k, v in params.items() if k not in REDIRECT_PARAMS}
        cleaned = urlunsplit((parts.scheme, parts.netloc, parts.path or "/",
                              urlencode(remaining, doseq=True), parts.fragment))
        return credentials, cleaned

    def load(self, redirect_url: Optional[str] = None) -> Optional[CredentialPair]:
        """Redirect tokens win; otherwise fall back to session storage"""
        if redirect_url:
            credentials, _ = self.consume_redirect(redirect_url)
            if credentials:
                return credentials
        return self.restore()

    def clear(self):
        self._credentials = None
        self.storage.remove_item(self.key)
