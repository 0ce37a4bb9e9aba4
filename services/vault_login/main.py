#!/usr/bin/env python3
"""
Vault Login Service - Renews the Cached Vault Token Before It Expires

Pre-flight step for tooling that needs a working Vault token. Checks how
long the token in ~/.vault-token has left and, if that is below --min-ttl,
runs `vault login -method=oidc` so the user can re-authenticate in the
browser.

How It Works:
-------------
1. Read the cached token and ask Vault (lookup-self) when it expires
2. If it has at least --min-ttl left, exit 0 without doing anything
3. Otherwise run `vault login -method=oidc -address <addr>` interactively
4. SIGTERM the login after 60s, SIGKILL it at 90s (both from launch)
5. Log the new TTL and exit 0, or exit 1 if the login failed

Any failure to read or look up the token counts as "needs renewal".
The vault CLI writes the new token itself; this service never does.

Usage:
------
    python -m services.vault_login.main --vault-addr https://vault.acme.com
    python -m services.vault_login.main --min-ttl 24h --verbose
    vault-login --token-path '$HOME/.vault-token'     # installed script

Exit Status:
------------
    0    token already fresh, or login succeeded
    1    bad --min-ttl, bad Vault address, unwritable --log-file, or login failed
    130  interrupted
"""

import sys
import logging
import argparse
from datetime import timedelta
from typing import Optional, Sequence, Type

from shared.config_loader import (
    DEFAULT_MIN_TTL,
    DEFAULT_TOKEN_PATH,
    DEFAULT_VAULT_BINARY,
    VaultLoginConfig,
    load_config,
)
from shared.logger_service import setup_logging
from shared.login_supervisor import LoginProcessError, LoginSupervisor
from shared.token_freshness import TokenFreshness, check_token_freshness, format_ttl
from shared.vault_client import VaultClientError, VaultClientFactory

logger = logging.getLogger(__name__)

# Escalation deadlines, both measured from launch of `vault login`
GRACEFUL_TIMEOUT_SECONDS = 60
FORCE_KILL_TIMEOUT_SECONDS = 90


def build_login_command(address: str, vault_binary: str = DEFAULT_VAULT_BINARY) -> list:
    """Command line for an interactive browser-based OIDC login."""
    return [vault_binary, "login", "-method=oidc", "-address", address]


def needs_renewal(freshness: TokenFreshness, min_ttl: timedelta) -> bool:
    """Unknown always needs renewal; Fresh needs it when below min_ttl."""
    if not freshness.is_known:
        return True
    return freshness.duration < min_ttl


def run_vault_login(
    config: VaultLoginConfig,
    client_factory: VaultClientFactory,
    supervisor_cls: Type[LoginSupervisor] = LoginSupervisor
) -> Optional[TokenFreshness]:
    """
    Check the token and run the OIDC login if it is close to expiry.

    Args:
        config: Service configuration
        client_factory: Vault client factory for the configured address
        supervisor_cls: Supervisor class (swappable in tests)

    Returns:
        The token freshness after a login, or None if no login was needed.

    Raises:
        LoginProcessError: If the login could not be started or failed
    """
    freshness = check_token_freshness(config.token_path, client_factory)

    if not needs_renewal(freshness, config.min_ttl):
        logger.info(f"Token TTL is not expiring soon: {format_ttl(freshness.duration)}")
        return None

    if freshness.is_known:
        logger.info(
            f"Token TTL {format_ttl(freshness.duration)} is below minimum "
            f"{format_ttl(config.min_ttl)}, logging in"
        )
    else:
        logger.info(f"Token TTL unknown ({freshness.reason}), logging in")

    supervisor = supervisor_cls(
        build_login_command(client_factory.address, config.vault_binary),
        GRACEFUL_TIMEOUT_SECONDS,
        FORCE_KILL_TIMEOUT_SECONDS,
    )
    supervisor.supervise()
    logger.info("Logged in using OIDC successfully")

    # Reporting only: the login already succeeded
    renewed = check_token_freshness(config.token_path, client_factory)
    logger.info(f"Current token TTL is now {format_ttl(renewed.duration)}")
    return renewed


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vault-login",
        description="Renew the cached Vault token via OIDC login when it is close to expiry",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  vault-login --vault-addr https://vault.acme.com     Renew if < 72h left
  vault-login --min-ttl 24h                           Renew if < 24h left
  vault-login --token-path /tmp/token --verbose       Custom token file
        """
    )

    parser.add_argument(
        "--vault-addr",
        default=None,
        help="Vault address, e.g. https://vault.acme.com (default: $VAULT_ADDR)"
    )

    parser.add_argument(
        "--token-path",
        default=DEFAULT_TOKEN_PATH,
        help=f"Path to Vault token, environment variables expanded (default: {DEFAULT_TOKEN_PATH})"
    )

    parser.add_argument(
        "--min-ttl",
        default=DEFAULT_MIN_TTL,
        help=f"Minimum TTL for the token, e.g. 72h, 1h30m (default: {DEFAULT_MIN_TTL})"
    )

    parser.add_argument(
        "--vault-binary",
        default=DEFAULT_VAULT_BINARY,
        help=f"vault executable to run for login (default: {DEFAULT_VAULT_BINARY})"
    )

    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write logs to this file"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level)"
    )

    return parser


def main(argv: Optional[Sequence[str]] = None):
    """Entry point for the vault login service."""
    args = build_arg_parser().parse_args(argv)

    try:
        config = load_config(args)
    except ValueError as e:
        setup_logging()
        logger.critical(f"Configuration error: {e}")
        sys.exit(1)

    try:
        setup_logging(config.log_level, config.log_file)
    except OSError as e:
        setup_logging()
        logger.critical(f"Cannot open log file {config.log_file}: {e}")
        sys.exit(1)

    try:
        client_factory = VaultClientFactory.from_env(config.vault_addr)
    except VaultClientError as e:
        logger.critical(f"Error creating Vault client: {e}")
        sys.exit(1)

    try:
        run_vault_login(config, client_factory)
    except LoginProcessError as e:
        logger.critical(f"Error doing Vault login: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        sys.exit(130)

    sys.exit(0)


if __name__ == "__main__":
    main()
