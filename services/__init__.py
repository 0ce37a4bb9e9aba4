"""
Services

Entry points built on the shared modules.

Services:
---------
- vault_login: Renews the cached Vault token via OIDC login when it is
  close to expiry
  - Looks up the token's expire_time with auth/token/lookup-self
  - Skips the login if at least --min-ttl (default 72h) remains
  - Runs `vault login -method=oidc` with SIGTERM at 60s, SIGKILL at 90s

Commands:
---------
    python -m services.vault_login.main --vault-addr https://vault.acme.com
    vault-login --min-ttl 24h
"""
