"""Static username -> bcrypt hash credential store.

The credential file is a JSON object mapping each username to a bcrypt hash::

    {
      "alex": "$2b$12$...."
    }

Hashes can be produced with ``camgate hash-password``.
"""

import json
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

import bcrypt

from camgate.errors import StartupError

logger = logging.getLogger(__name__)

_HASH_PREFIXES = ("$2a$", "$2b$", "$2y$")
_COST_RE = re.compile(r"\$2[aby]\$(\d{2})\$")

# bcrypt only looks at the first 72 bytes of a password; bcrypt 5 refuses more.
BCRYPT_MAX_BYTES = 72
DEFAULT_ROUNDS = 12


class CredentialStore:
    """Read-only mapping of usernames to password hashes.

    Attributes:
        hashes: Immutable view of ``{username: bcrypt_hash}``.
    """

    def __init__(self, hashes: Mapping[str, str]) -> None:
        self.hashes = MappingProxyType(dict(hashes))

    def __len__(self) -> int:
        return len(self.hashes)

    def __contains__(self, username: object) -> bool:
        return username in self.hashes

    def get(self, username: str) -> str | None:
        """Return the stored hash for ``username`` or None."""
        return self.hashes.get(username)


def load_credentials(path: str | Path) -> CredentialStore:
    """Load the credential file.

    Args:
        path: Path to the JSON credential file.

    Returns:
        A populated CredentialStore.

    Raises:
        StartupError: If the file is unreadable, not a JSON object of
            strings, or contains something that is not a bcrypt hash.
    """
    path = Path(path)
    try:
        with open(path, "r") as fh:
            raw = json.load(fh)
    except OSError as exc:
        raise StartupError(f"Cannot read credential file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise StartupError(f"Credential file {path} is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise StartupError(f"Credential file {path} must contain a JSON object")

    for username, hashed in raw.items():
        if not isinstance(hashed, str) or not hashed.startswith(_HASH_PREFIXES):
            raise StartupError(
                f"Credential file {path}: entry for {username!r} is not a bcrypt hash"
            )

    logger.info("Loaded %d credentials from %s", len(raw), path)
    return CredentialStore(raw)


def encode_password(password: str) -> bytes:
    """Encode ``password`` the way it is hashed and checked."""
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_cost(hashed: str) -> int | None:
    """Return the cost factor of a bcrypt hash, or None if it has none."""
    match = _COST_RE.match(hashed)
    if match is None:
        return None
    return int(match.group(1))


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a bcrypt hash of ``password`` for the credential file.

    Passwords longer than 72 bytes are truncated, matching what the
    authenticator compares.
    """
    return bcrypt.hashpw(encode_password(password), bcrypt.gensalt(rounds=rounds)).decode(
        "ascii"
    )
