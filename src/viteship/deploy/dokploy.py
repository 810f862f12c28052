"""
Dokploy API client.

Only the compose redeploy endpoint is used:

    POST {DOKPLOY_API_URL}/api/compose.deploy
    x-api-key: {DOKPLOY_API_KEY}
    {"composeId": "{DOKPLOY_COMPOSE_ID}"}
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from viteship.core.errors import ConfigError, DeployTriggerError
from viteship.scaffold.placeholders import DOKPLOY_SECRETS

logger = logging.getLogger(__name__)

DEPLOY_ENDPOINT = "/api/compose.deploy"


@dataclass
class DokployDeployment:
    """Response from a deploy trigger."""

    compose_id: str
    status_code: int
    body: Any = None


class DokployClient:
    """HTTP client for the Dokploy API."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={
                "accept": "application/json",
                "x-api-key": api_key,
            },
        )

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str | None] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> tuple[DokployClient, str]:
        """
        Build a client and compose id from DOKPLOY_* variables.

        Raises:
            ConfigError: If any of the three variables is missing or empty
        """
        env = os.environ if env is None else env
        missing = [name for name in DOKPLOY_SECRETS if not env.get(name)]
        if missing:
            raise ConfigError(f"missing Dokploy settings: {', '.join(missing)}")

        client = cls(
            api_url=str(env["DOKPLOY_API_URL"]),
            api_key=str(env["DOKPLOY_API_KEY"]),
            transport=transport,
        )
        return client, str(env["DOKPLOY_COMPOSE_ID"])

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> DokployClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def trigger_compose_deploy(self, compose_id: str) -> DokployDeployment:
        """
        Ask Dokploy to redeploy a compose service.

        Raises:
            DeployTriggerError: On transport failure or a non-2xx response, redirects included
        """
        url = f"{self.api_url}{DEPLOY_ENDPOINT}"
        logger.info("POST %s composeId=%s", url, compose_id)

        try:
            resp = self.client.post(url, json={"composeId": compose_id})
        except httpx.HTTPError as e:
            raise DeployTriggerError(f"request to {url} failed: {e}") from e

        if not resp.is_success:
            detail = resp.text.strip()[:500]
            raise DeployTriggerError(
                f"Dokploy returned {resp.status_code}: {detail}",
                status_code=resp.status_code,
            )

        try:
            body = resp.json() if resp.content else None
        except ValueError:
            body = resp.text

        return DokployDeployment(compose_id=compose_id, status_code=resp.status_code, body=body)
