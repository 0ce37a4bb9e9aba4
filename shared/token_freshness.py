#!/usr/bin/env python3
"""
Token Freshness Module

Answers one question: how long until the cached Vault token expires?

The answer is either Fresh(remaining) or Unknown(reason). Unknown covers
every way the check can fail (no token file, unreadable file, Vault lookup
failure, missing or malformed expire_time). Nothing is raised to the caller;
the failure detail goes to the log and into Unknown.reason.

Callers that only want a number use get_token_ttl(), which reports Unknown
as a zero duration, i.e. "needs renewal".
"""

import os
import re
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

from shared.vault_client import TokenLookupError, VaultClientFactory

logger = logging.getLogger(__name__)

# Key of the expiry timestamp in the lookup-self data
EXPIRE_TIME_FIELD = "expire_time"

# RFC 3339: date, "T" (or space), time, optional fraction, mandatory offset
_RFC3339 = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


@dataclass(frozen=True)
class Fresh:
    """The token was looked up and expires after `remaining` (may be negative)."""
    remaining: timedelta

    @property
    def duration(self) -> timedelta:
        return self.remaining

    @property
    def is_known(self) -> bool:
        return True


@dataclass(frozen=True)
class Unknown:
    """The token's remaining lifetime could not be determined."""
    reason: str

    @property
    def duration(self) -> timedelta:
        return timedelta(0)

    @property
    def is_known(self) -> bool:
        return False


TokenFreshness = Union[Fresh, Unknown]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_expire_time(value: str) -> datetime:
    """
    Parse an RFC 3339 timestamp as returned by Vault.

    Vault reports nanoseconds ("2026-10-22T09:15:04.123456789Z"); anything
    past microseconds is dropped.

    Raises:
        ValueError: If the value is not an RFC 3339 timestamp with an offset
    """
    match = _RFC3339.match(value.strip())
    if not match:
        raise ValueError(f"not an RFC 3339 timestamp: {value!r}")

    date_part, time_part, fraction, offset = match.groups()
    if offset in ("Z", "z"):
        offset = "+00:00"

    text = f"{date_part}T{time_part}"
    if fraction:
        text += "." + fraction[:6].ljust(6, "0")
    return datetime.fromisoformat(text + offset)


def format_ttl(duration: timedelta) -> str:
    """Render a duration the compact way, e.g. 71h59m58s or -5m0s."""
    total = duration.total_seconds()
    sign = "-" if total < 0 else ""
    # Round before splitting so 59.9996s carries into the minutes
    total = round(abs(total), 3)
    if total == 0:
        return "0s"

    whole = int(total)
    hours, rest = divmod(whole, 3600)
    minutes, seconds = divmod(rest, 60)
    sec_text = f"{seconds + (total - whole):.3f}".rstrip("0").rstrip(".")

    if hours:
        return f"{sign}{hours}h{minutes}m{sec_text}s"
    if minutes:
        return f"{sign}{minutes}m{sec_text}s"
    return f"{sign}{sec_text}s"


def _read_token(token_path: str) -> Union[str, Unknown]:
    """Load the raw token, or say why we couldn't."""
    try:
        os.stat(token_path)
    except FileNotFoundError:
        logger.debug(f"No token file at {token_path}")
        return Unknown(f"token file {token_path} does not exist")
    except OSError as e:
        logger.warning(f"Error accessing token file: {e}")
        return Unknown(f"cannot access token file: {e}")

    try:
        with open(token_path, "r", encoding="utf-8") as f:
            token = f.read().strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Error reading token file: {e}")
        return Unknown(f"cannot read token file: {e}")

    if not token:
        logger.warning(f"Token file {token_path} is empty")
        return Unknown("token file is empty")

    if not (token.isascii() and token.isprintable()):
        logger.warning(f"Token file {token_path} contains non-printable or non-ASCII characters")
        return Unknown("token file contains invalid characters")

    return token


def check_token_freshness(
    token_path: str,
    client_factory: VaultClientFactory,
    now: Optional[Callable[[], datetime]] = None
) -> TokenFreshness:
    """
    Work out how long the token stored at token_path remains valid.

    The token is read from disk and used to authenticate its own
    lookup-self call; the lookup reports expire_time.

    Args:
        token_path: Path to the cached token (already expanded)
        client_factory: Builds a fresh Vault client for the token
        now: Clock returning an aware UTC datetime (tests)

    Returns:
        Fresh(expire_time - now) on success, Unknown(reason) otherwise
    """
    token = _read_token(token_path)
    if isinstance(token, Unknown):
        return token

    try:
        data = client_factory.lookup_self(token)
    except TokenLookupError as e:
        logger.warning(f"Error looking up token: {e}")
        return Unknown(str(e))

    if EXPIRE_TIME_FIELD not in data:
        logger.warning(f"{EXPIRE_TIME_FIELD} not found in token lookup data")
        return Unknown(f"{EXPIRE_TIME_FIELD} missing from lookup data")

    raw = data[EXPIRE_TIME_FIELD]
    if not isinstance(raw, str):
        logger.warning(f"{EXPIRE_TIME_FIELD} is not a string: {raw!r}")
        return Unknown(f"{EXPIRE_TIME_FIELD} is not a string")

    try:
        expire_time = parse_expire_time(raw)
    except ValueError as e:
        logger.warning(f"Error parsing {EXPIRE_TIME_FIELD}: {e}")
        return Unknown(f"malformed {EXPIRE_TIME_FIELD}: {raw!r}")

    remaining = expire_time - (now or _utcnow)()
    logger.debug(f"Token expires at {expire_time.isoformat()} ({format_ttl(remaining)} left)")
    return Fresh(remaining)


def get_token_ttl(token_path: str, client_factory: VaultClientFactory) -> timedelta:
    """Remaining token lifetime, or zero when it can't be determined."""
    return check_token_freshness(token_path, client_factory).duration
