"""
Vault Login Service

Pre-flight token renewal for tools that need a valid Vault token.

Why It's Needed:
----------------
- Vault tokens issued through OIDC expire (typically after a few days)
- Tools that find an expired token fail halfway through their work
- Renewing up front, while a human is at the keyboard, avoids that

How It Works:
-------------
1. Looks up the cached token (~/.vault-token) with auth/token/lookup-self
2. Does nothing if the token has at least MIN_TTL left (default 72h)
3. Otherwise runs `vault login -method=oidc` with the terminal attached
4. Escalates a stuck login: SIGTERM at 60s, SIGKILL at 90s after launch

Configuration:
--------------
| Setting                     | Value | Description                          |
|-----------------------------|-------|--------------------------------------|
| GRACEFUL_TIMEOUT_SECONDS    | 60    | SIGTERM the login after this long    |
| FORCE_KILL_TIMEOUT_SECONDS  | 90    | SIGKILL the login after this long    |
| --min-ttl                   | 72h   | Renew below this remaining lifetime  |

Usage:
------
    python -m services.vault_login.main --vault-addr https://vault.acme.com
"""

from services.vault_login.main import (
    run_vault_login,
    build_login_command,
    needs_renewal,
    GRACEFUL_TIMEOUT_SECONDS,
    FORCE_KILL_TIMEOUT_SECONDS,
)

__all__ = [
    'run_vault_login',
    'build_login_command',
    'needs_renewal',
    'GRACEFUL_TIMEOUT_SECONDS',
    'FORCE_KILL_TIMEOUT_SECONDS',
]
