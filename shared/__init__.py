"""
Shared modules for the Vault login service.

- vault_client: token-scoped hvac clients and the lookup-self call
- token_freshness: how long the cached token has left (Fresh / Unknown)
- login_supervisor: runs `vault login` under a SIGTERM/SIGKILL deadline
- config_loader: CLI arguments -> VaultLoginConfig, Go-style durations
- logger_service: logging setup

Usage:
    from shared import VaultClientFactory, check_token_freshness

    factory = VaultClientFactory("https://vault.acme.com")
    freshness = check_token_freshness("/home/dev/.vault-token", factory)
    if not freshness.is_known:
        print(freshness.reason)
"""

from shared.vault_client import (
    VaultClientFactory,
    VaultClientError,
    TokenLookupError,
)
from shared.token_freshness import (
    Fresh,
    Unknown,
    TokenFreshness,
    check_token_freshness,
    get_token_ttl,
    format_ttl,
)
from shared.login_supervisor import (
    LoginSupervisor,
    LoginProcessError,
    LoginStartError,
    SupervisorState,
)
from shared.config_loader import (
    VaultLoginConfig,
    load_config,
    parse_duration,
)
from shared.logger_service import setup_logging

__all__ = [
    'VaultClientFactory',
    'VaultClientError',
    'TokenLookupError',
    'Fresh',
    'Unknown',
    'TokenFreshness',
    'check_token_freshness',
    'get_token_ttl',
    'format_ttl',
    'LoginSupervisor',
    'LoginProcessError',
    'LoginStartError',
    'SupervisorState',
    'VaultLoginConfig',
    'load_config',
    'parse_duration',
    'setup_logging',
]
