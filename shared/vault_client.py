#!/usr/bin/env python3
"""
Vault Client Module

Thin wrapper around hvac for the one call this service needs: looking up
the token we already hold (auth/token/lookup-self) to learn when it expires.

Each lookup gets its own hvac.Client on its own requests.Session, built
from the token being checked. Nothing is cached between lookups, so one
evaluation can never leak its token into the next.

Usage:
    factory = VaultClientFactory("https://vault.acme.com")
    data = factory.lookup_self(token)
    data.get("expire_time")   # "2026-10-22T09:15:04.123456789Z"
"""

import os
import logging
from typing import Any, Dict, Optional, Union
from urllib.parse import urlparse

import hvac
import requests
from hvac import exceptions as hvac_exceptions

logger = logging.getLogger(__name__)

# Vault's own default when neither the flag nor VAULT_ADDR is set
DEFAULT_VAULT_ADDR = "https://127.0.0.1:8200"


class VaultClientError(Exception):
    """Raised when a Vault client cannot be configured (bad address)."""
    pass


class TokenLookupError(Exception):
    """Raised when auth/token/lookup-self fails or returns an unusable body."""
    pass


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


class VaultClientFactory:
    """
    Builds independent, token-scoped Vault clients for one Vault address.

    Attributes:
        address: Validated Vault address
        namespace: Optional Vault Enterprise namespace
        verify: TLS verification (bool or CA bundle path), passed to requests
    """

    def __init__(
        self,
        address: str = "",
        namespace: Optional[str] = None,
        verify: Union[bool, str] = True
    ):
        """
        Initialize the factory.

        Args:
            address: Vault address. Empty means VAULT_ADDR, then the default.
            namespace: Optional Vault namespace
            verify: TLS verification flag or CA bundle path

        Raises:
            VaultClientError: If the address is not an http(s) URL with a host
        """
        resolved = address or os.environ.get("VAULT_ADDR", "") or DEFAULT_VAULT_ADDR
        try:
            parsed = urlparse(resolved)
        except ValueError as e:
            raise VaultClientError(f"invalid Vault address {resolved!r}: {e}") from e
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise VaultClientError(
                f"invalid Vault address {resolved!r}: expected http(s)://host[:port]"
            )

        self.address = resolved.rstrip("/")
        self.namespace = namespace
        self.verify = verify

    @classmethod
    def from_env(cls, address: str = "") -> "VaultClientFactory":
        """
        Build a factory honouring the same TLS/namespace variables as the vault CLI.

        Reads VAULT_NAMESPACE, VAULT_CACERT and VAULT_SKIP_VERIFY.
        """
        verify: Union[bool, str] = True
        if _env_flag("VAULT_SKIP_VERIFY"):
            verify = False
        elif os.environ.get("VAULT_CACERT"):
            verify = os.environ["VAULT_CACERT"]

        return cls(
            address=address,
            namespace=os.environ.get("VAULT_NAMESPACE") or None,
            verify=verify,
        )

    def client_for(self, token: str) -> hvac.Client:
        """Return a new hvac client authenticated with exactly this token."""
        session = requests.Session()
        return hvac.Client(
            url=self.address,
            token=token,
            verify=self.verify,
            namespace=self.namespace,
            session=session,
        )

    def lookup_self(self, token: str) -> Dict[str, Any]:
        """
        Look up the given token against Vault.

        Args:
            token: Vault token to introspect (also used to authenticate)

        Returns:
            dict: The "data" section of the lookup-self response

        Raises:
            TokenLookupError: On transport errors, Vault errors, or a response
                              without a data mapping
        """
        client = self.client_for(token)
        try:
            response = client.auth.token.lookup_self()
        except hvac_exceptions.VaultError as e:
            raise TokenLookupError(f"Vault rejected token lookup: {e}") from e
        except requests.exceptions.RequestException as e:
            raise TokenLookupError(f"could not reach Vault at {self.address}: {e}") from e
        except ValueError as e:
            # e.g. UnicodeEncodeError building the X-Vault-Token header
            raise TokenLookupError(f"could not send token lookup: {e}") from e
        finally:
            client.adapter.close()

        data = response.get("data") if isinstance(response, dict) else None
        if not isinstance(data, dict):
            raise TokenLookupError("token lookup response has no data section")

        return data
