"""
Secrets for ByteInit sign-in.

Session tokens handed to clients look like ``bi_sess_<token_id>_<secret>``.
The token id is stored in clear for lookup; only an Argon2id hash of the
secret is kept. Passwords use the same hasher. Verification and
password-reset links carry a separate single-use hex token.
"""
from __future__ import annotations

import secrets
import uuid
from typing import NamedTuple, Optional, Tuple

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from argon2.low_level import Type

TOKEN_PREFIX = "bi_sess_"

_hasher = PasswordHasher(time_cost=2, memory_cost=102400, parallelism=8, hash_len=32, type=Type.ID)


class ParsedToken(NamedTuple):
    token_id: str
    secret: str


def generate_token() -> Tuple[str, str, str]:
    """Mint a session token; returns ``(token_id, secret, token_for_client)``."""
    # The id is hex so the first '_' after the prefix always ends it
    token_id = uuid.uuid4().hex[:16]
    secret = secrets.token_urlsafe(32)
    return token_id, secret, f"{TOKEN_PREFIX}{token_id}_{secret}"


def parse_token(token: str) -> Optional[ParsedToken]:
    """Split a client token, or return None when it is not one of ours."""
    if not token or not token.startswith(TOKEN_PREFIX):
        return None
    token_id, sep, secret = token[len(TOKEN_PREFIX):].partition("_")
    if not (sep and token_id and secret):
        return None
    return ParsedToken(token_id, secret)


def generate_email_token() -> str:
    return secrets.token_hex(32)


def hash_secret(secret: str) -> str:
    return _hasher.hash(secret)


def verify_secret(secret: str, encoded_hash: str) -> bool:
    """Constant-time check; malformed hashes count as a mismatch."""
    if not (secret and encoded_hash):
        return False
    try:
        return _hasher.verify(encoded_hash, secret)
    except (VerificationError, InvalidHashError):
        return False


hash_password = hash_secret
verify_password = verify_secret
