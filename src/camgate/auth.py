"""HTTP Basic authentication for camgate.

Every request carries its own credentials; there are no sessions. Password
checks use ``bcrypt.checkpw`` and run in a worker thread so a slow hash does
not stall other connections.

References:
    - https://datatracker.ietf.org/doc/html/rfc7617
"""

import asyncio
import base64
import binascii
import logging

import bcrypt

from camgate.credentials import DEFAULT_ROUNDS, CredentialStore, encode_password, hash_cost
from camgate.errors import AuthenticationFailure

logger = logging.getLogger(__name__)

SCHEME = "basic"

# Range accepted by bcrypt.gensalt().
_MIN_ROUNDS = 4
_MAX_ROUNDS = 31


def _dummy_hash(credentials: CredentialStore) -> bytes:
    """Hash compared against when the username is unknown.

    Uses the cost factor of the first stored hash so an unknown user costs
    the same as a wrong password.
    """
    first = next(iter(credentials.hashes.values()), None)
    cost = hash_cost(first) if first is not None else None
    if cost is None or not _MIN_ROUNDS <= cost <= _MAX_ROUNDS:
        cost = DEFAULT_ROUNDS
    return bcrypt.hashpw(b"camgate-unknown-user", bcrypt.gensalt(rounds=cost))


def parse_basic_header(header: str | None) -> tuple[str, str]:
    """Decode an ``Authorization: Basic ...`` header.

    Args:
        header: The raw header value, or None if absent.

    Returns:
        A ``(username, password)`` tuple. The password is everything after
        the first colon, so it may itself contain colons.

    Raises:
        AuthenticationFailure: If the header is absent or malformed.
    """
    if not header:
        raise AuthenticationFailure("missing Authorization header")

    scheme, _, payload = header.strip().partition(" ")
    if scheme.lower() != SCHEME or not payload.strip():
        raise AuthenticationFailure("not a Basic Authorization header")

    try:
        decoded = base64.b64decode(payload.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise AuthenticationFailure("undecodable Basic payload") from exc

    username, sep, password = decoded.partition(":")
    if not sep:
        raise AuthenticationFailure("Basic payload has no colon")
    return username, password


def _check_password(password: str, hashed: bytes) -> bool:
    try:
        return bcrypt.checkpw(encode_password(password), hashed)
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


class BasicAuthenticator:
    """Verifies Basic-Auth credentials against a CredentialStore.

    Attributes:
        credentials: The loaded credential store.
        realm: Realm advertised in ``WWW-Authenticate`` on failure.
        dummy_hash: Checked against for unknown users. Built once here,
            before any listener accepts connections.
    """

    def __init__(self, credentials: CredentialStore, realm: str = "camgate") -> None:
        self.credentials = credentials
        self.realm = realm
        self.dummy_hash = _dummy_hash(credentials)

    @property
    def challenge(self) -> str:
        """Value for the ``WWW-Authenticate`` response header."""
        return f'Basic realm="{self.realm}"'

    async def authenticate(self, header: str | None) -> str:
        """Authenticate a request's Authorization header.

        Unknown usernames are checked against a dummy hash so they take as
        long as a wrong password for a known user.

        Args:
            header: The raw ``Authorization`` header value.

        Returns:
            The authenticated username.

        Raises:
            AuthenticationFailure: On any missing, malformed or wrong credential.
        """
        username, password = parse_basic_header(header)

        stored = self.credentials.get(username)
        if stored is None:
            await asyncio.to_thread(_check_password, password, self.dummy_hash)
            raise AuthenticationFailure(f"unknown user {username!r}")

        ok = await asyncio.to_thread(_check_password, password, stored.encode("utf-8"))
        if not ok:
            raise AuthenticationFailure(f"wrong password for {username!r}")
        return username
