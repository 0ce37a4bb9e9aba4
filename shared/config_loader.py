#!/usr/bin/env python3
"""
Config Loader Module

Turns parsed command-line arguments into a VaultLoginConfig:
- Vault address (falls back to the VAULT_ADDR environment variable)
- Token storage path with $VAR / ~ expansion
- Minimum acceptable token TTL, written as a Go-style duration ("72h", "1h30m")

Nothing here talks to Vault. Address validation happens when the client
factory is built, not at parse time.
"""

import os
import re
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_PATH = "$HOME/.vault-token"
DEFAULT_MIN_TTL = "72h"
DEFAULT_VAULT_BINARY = "vault"

# Duration unit -> microseconds
_DURATION_UNITS = {
    "ns": 0.001,
    "us": 1,
    "µs": 1,
    "μs": 1,
    "ms": 1000,
    "s": 1000 * 1000,
    "m": 60 * 1000 * 1000,
    "h": 60 * 60 * 1000 * 1000,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


@dataclass
class VaultLoginConfig:
    """
    Settings for one run of the Vault login service.

    Attributes:
        vault_addr: Vault server address ("" means use VAULT_ADDR / default)
        token_path: Expanded path to the cached Vault token
        min_ttl: Renew when the token has less than this left
        vault_binary: Executable used for `vault login`
        log_level: Logging level name
        log_file: Optional log file path
    """
    vault_addr: str
    token_path: str
    min_ttl: timedelta
    vault_binary: str = DEFAULT_VAULT_BINARY
    log_level: str = "INFO"
    log_file: Optional[str] = None


def parse_duration(text: str) -> timedelta:
    """
    Parse a Go-style duration string.

    Accepts an optional sign followed by one or more number+unit groups,
    e.g. "72h", "1h30m", "1.5h", "-90s", "250ms". A bare "0" is allowed.

    Args:
        text: Duration string

    Returns:
        timedelta: Parsed duration

    Raises:
        ValueError: If the string is not a valid duration
    """
    if not isinstance(text, str):
        raise ValueError(f"invalid duration {text!r}")

    s = text.strip()
    original = s
    negative = False
    if s[:1] in ("-", "+"):
        negative = s[0] == "-"
        s = s[1:]

    if s == "0":
        return timedelta(0)
    if not s:
        raise ValueError(f"invalid duration {original!r}")

    total_us = 0.0
    pos = 0
    while pos < len(s):
        match = _DURATION_PART.match(s, pos)
        if not match:
            if re.match(r"(\d+(?:\.\d*)?|\.\d+)", s[pos:]):
                raise ValueError(f"missing or unknown unit in duration {original!r}")
            raise ValueError(f"invalid duration {original!r}")
        number, unit = match.groups()
        total_us += float(number) * _DURATION_UNITS[unit]
        pos = match.end()

    try:
        duration = timedelta(microseconds=total_us)
    except OverflowError as e:
        raise ValueError(f"invalid duration {original!r}: out of range") from e
    return -duration if negative else duration


def expand_token_path(path: str) -> str:
    """Expand $VAR, ${VAR} and a leading ~ in the token path."""
    return os.path.expanduser(os.path.expandvars(path))


def load_config(args) -> VaultLoginConfig:
    """
    Build the service configuration from parsed CLI arguments.

    Args:
        args: argparse.Namespace with vault_addr, token_path, min_ttl and
              optionally vault_binary, verbose, log_file

    Returns:
        VaultLoginConfig: Resolved configuration

    Raises:
        ValueError: If min_ttl is not a valid duration
    """
    try:
        min_ttl = parse_duration(args.min_ttl)
    except ValueError as e:
        raise ValueError(f"error parsing --min-ttl: {e}") from e

    vault_addr = args.vault_addr
    if vault_addr is None:
        vault_addr = os.environ.get("VAULT_ADDR", "")

    config = VaultLoginConfig(
        vault_addr=vault_addr,
        token_path=expand_token_path(args.token_path),
        min_ttl=min_ttl,
        vault_binary=getattr(args, "vault_binary", None) or DEFAULT_VAULT_BINARY,
        log_level="DEBUG" if getattr(args, "verbose", False) else "INFO",
        log_file=getattr(args, "log_file", None),
    )

    logger.debug(
        f"Config loaded: vault_addr={config.vault_addr or '(default)'}, "
        f"token_path={config.token_path}, min_ttl={config.min_ttl}"
    )
    return config
