"""API token storage.

The token lives in the OS keyring (service ``hardcover-tui``, user
``api-key``). When no keyring backend is usable, or when configured with
``[credentials] backend = "file"``, it is a single line in a user-only
(``0600``) file under the user config directory instead. File writes go
through a temp file and ``os.replace`` so a crash never leaves a truncated
token behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import keyring
from keyring.backends import fail, null
from keyring.errors import KeyringError, PasswordDeleteError

if TYPE_CHECKING:
    from hardcover_tui.config.settings import AppSettings

logger = logging.getLogger(__name__)

KEYRING_SERVICE = "hardcover-tui"
KEYRING_USER = "api-key"


class CredentialStoreError(Exception):
    """Raised when the token cannot be read, written or removed."""

    code = "credential_error"


class CredentialStore(Protocol):
    def load(self) -> str | None: ...

    def save(self, token: str) -> None: ...

    def delete(self) -> None: ...


class KeyringCredentialStore:
    """Token kept in the OS keyring through the ``keyring`` package."""

    def __init__(self, service: str = KEYRING_SERVICE, user: str = KEYRING_USER) -> None:
        self.service = service
        self.user = user

    def __repr__(self) -> str:
        return f"<KeyringCredentialStore {self.service}/{self.user}>"

    def load(self) -> str | None:
        try:
            raw = keyring.get_password(self.service, self.user)
        except KeyringError as exc:
            msg = f"Cannot read token from the keyring: {exc}"
            raise CredentialStoreError(msg) from exc
        token = (raw or "").strip()
        return token or None

    def save(self, token: str) -> None:
        token = token.strip()
        if not token:
            msg = "Refusing to store an empty token"
            raise CredentialStoreError(msg)
        try:
            keyring.set_password(self.service, self.user, token)
        except KeyringError as exc:
            msg = f"Cannot write token to the keyring: {exc}"
            raise CredentialStoreError(msg) from exc
        logger.debug("Stored token in keyring %s", self.service)

    def delete(self) -> None:
        try:
            keyring.delete_password(self.service, self.user)
        except PasswordDeleteError:
            logger.debug("No token in keyring %s", self.service)
        except KeyringError as exc:
            msg = f"Cannot remove token from the keyring: {exc}"
            raise CredentialStoreError(msg) from exc
        else:
            logger.debug("Removed token from keyring %s", self.service)


def keyring_available() -> bool:
    """True when ``keyring`` resolved to a backend that can actually store secrets."""
    try:
        backend = keyring.get_keyring()
    except KeyringError:
        return False
    return not isinstance(backend, fail.Keyring | null.Keyring)


class FileCredentialStore:
    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> str | None:
        """Return the stored token, or None if there is none."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            msg = f"Cannot read token from {self.path}: {exc}"
            raise CredentialStoreError(msg) from exc
        token = raw.strip()
        return token or None

    def save(self, token: str) -> None:
        token = token.strip()
        if not token:
            msg = "Refusing to store an empty token"
            raise CredentialStoreError(msg)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".token-")
            try:
                os.fchmod(fd, 0o600)
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(token + "\n")
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as exc:
            msg = f"Cannot write token to {self.path}: {exc}"
            raise CredentialStoreError(msg) from exc
        logger.debug("Stored token at %s", self.path)

    def delete(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            msg = f"Cannot remove token at {self.path}: {exc}"
            raise CredentialStoreError(msg) from exc
        logger.debug("Removed token at %s", self.path)


class EnvOverrideCredentialStore:
    """Serve a token supplied by the environment ahead of *backing*.

    The override is never written anywhere. Saving a new token or logging
    out drops the override for the rest of the process.
    """

    def __init__(self, token: str, backing: CredentialStore) -> None:
        self._override: str | None = token.strip() or None
        self.backing = backing

    @property
    def overriding(self) -> bool:
        return self._override is not None

    def load(self) -> str | None:
        if self._override:
            return self._override
        return self.backing.load()

    def save(self, token: str) -> None:
        self._override = None
        self.backing.save(token)

    def delete(self) -> None:
        self._override = None
        self.backing.delete()


def open_store(settings: AppSettings) -> CredentialStore:
    """Build the token store *settings* ask for.

    ``auto`` prefers the keyring and falls back to the token file when no
    keyring backend is available. An environment token shadows either.
    """
    backend = settings.credentials.backend
    store: CredentialStore
    if backend == "file" or (backend == "auto" and not keyring_available()):
        if backend == "auto":
            logger.info("No usable keyring backend; storing the token in %s", settings.token_path)
        store = FileCredentialStore(settings.token_path)
    else:
        store = KeyringCredentialStore()
    if settings.token:
        store = EnvOverrideCredentialStore(settings.token, store)
    return store


def describe_store(store: CredentialStore) -> str:
    """Where *store* keeps the token, for ``auth status``."""
    if isinstance(store, EnvOverrideCredentialStore):
        return "environment" if store.overriding else describe_store(store.backing)
    if isinstance(store, KeyringCredentialStore):
        return f"keyring {store.service}"
    if isinstance(store, FileCredentialStore):
        return str(store.path)
    return type(store).__name__
