"""
Vercel registrar adapter - Implements RegistrarClient protocol.

This module provides the HTTPS JSON implementation of the domain's
registrar port using httpx with bearer-token authentication.

Endpoint mapping:
- add_domain         POST   /v10/projects/{project}/domains
- remove_domain      DELETE /v10/projects/{project}/domains/{host}
- get_domain         GET    /v10/projects/{project}/domains/{host}
- get_domain_config  GET    /v6/domains/{host}/config   (domain-level, optional teamId)

Error messages are sanitized before they are attached to RegistrarError so
the provider's name never reaches tenants.
"""

import logging
import re
from typing import Any
from urllib.parse import quote

import httpx

from src.domain.exceptions import RegistrarError, RegistrarErrorKind
from src.domain.ports import DomainDnsConfig, DomainRecord, VerificationChallenge

logger = logging.getLogger(__name__)

_ALREADY_EXISTS_CODES = frozenset({"domain_already_in_use", "domain_already_added"})
_PROVIDER_NAME = re.compile(r"vercel(\.com)?", re.IGNORECASE)


def sanitize_error_message(message: str) -> str:
    """Replace provider references with a generic term."""
    return _PROVIDER_NAME.sub("the platform", message).strip()


def create_http_client(base_url: str, token: str, timeout: float) -> httpx.Client:
    """Create the shared httpx client used by VercelRegistrarClient."""
    return httpx.Client(
        base_url=base_url,
        headers={"Authorization": f"Bearer {token}"},
        timeout=timeout,
    )


class VercelRegistrarClient:
    """
    Implements RegistrarClient protocol via the Vercel REST API.

    Uses structural subtyping - no explicit inheritance from Protocol.
    The httpx client is owned by the caller (created in the app lifespan).
    """

    def __init__(self, client: httpx.Client, project_id: str, team_id: str = "") -> None:
        """
        Initialize adapter with an HTTP client.

        Args:
            client: httpx.Client with base_url and Authorization header set
            project_id: Project the domains are attached to
            team_id: Optional team scope for the domain-level config endpoint
        """
        self._client = client
        self._project_id = project_id
        self._team_id = team_id

    def add_domain(self, host: str) -> DomainRecord:
        response = self._request("POST", self._project_path(), json={"name": host})
        if response.is_success:
            return self._parse_domain(_json_object(response))

        code, message = self._error_detail(response, "Failed to add domain")
        if code in _ALREADY_EXISTS_CODES:
            raise RegistrarError(RegistrarErrorKind.ALREADY_EXISTS, message, response.status_code)
        raise self._error_for(response, message)

    def remove_domain(self, host: str) -> None:
        response = self._request("DELETE", self._project_path(host))
        if response.is_success or response.status_code == httpx.codes.NOT_FOUND:
            return
        _, message = self._error_detail(response, "Failed to remove domain")
        raise self._error_for(response, message)

    def get_domain(self, host: str) -> DomainRecord:
        response = self._request("GET", self._project_path(host))
        if response.is_success:
            return self._parse_domain(_json_object(response))
        _, message = self._error_detail(response, "Failed to get domain")
        raise self._error_for(response, message)

    def get_domain_config(self, host: str) -> DomainDnsConfig:
        params = {"teamId": self._team_id} if self._team_id else None
        response = self._request("GET", f"/v6/domains/{quote(host, safe='')}/config", params=params)
        if response.is_success:
            return self._parse_config(_json_object(response))

        logger.error(
            "[Registrar] Error getting domain config for %s: status=%s body=%s",
            host,
            response.status_code,
            response.text,
        )
        _, message = self._error_detail(response, "Failed to get domain config")
        raise self._error_for(response, message)

    def _project_path(self, host: str | None = None) -> str:
        path = f"/v10/projects/{self._project_id}/domains"
        if host is not None:
            path = f"{path}/{quote(host, safe='')}"
        return path

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("[Registrar] %s %s failed: %s", method, path, e)
            raise RegistrarError(
                RegistrarErrorKind.UNAVAILABLE, sanitize_error_message(str(e) or type(e).__name__)
            ) from e

    @staticmethod
    def _error_detail(response: httpx.Response, fallback: str) -> tuple[str | None, str]:
        """
        Extract (code, sanitized message) from an error response.

        The body is usually ``{"error": {"code", "message"}}`` but gateways
        answer with ``{"error": "Service Unavailable"}``, lists or plain text.
        """
        error = _json_object(response).get("error")
        code: str | None = None
        message: str | None = None
        if isinstance(error, dict):
            code = error.get("code") if isinstance(error.get("code"), str) else None
            message = error.get("message") if isinstance(error.get("message"), str) else None
        elif isinstance(error, str):
            message = error
        message = message or f"{fallback}: {response.reason_phrase}"
        return code, sanitize_error_message(message)

    @staticmethod
    def _error_for(response: httpx.Response, message: str) -> RegistrarError:
        if response.status_code == httpx.codes.NOT_FOUND:
            kind = RegistrarErrorKind.NOT_FOUND
        elif response.status_code == httpx.codes.FORBIDDEN:
            kind = RegistrarErrorKind.FORBIDDEN
        else:
            kind = RegistrarErrorKind.UNAVAILABLE
        return RegistrarError(kind, message, response.status_code)

    @staticmethod
    def _parse_domain(data: dict[str, Any]) -> DomainRecord:
        return DomainRecord(
            name=data.get("name", ""),
            verified=bool(data.get("verified", False)),
            verification=tuple(
                VerificationChallenge(
                    type=item.get("type", ""),
                    domain=item.get("domain", ""),
                    value=item.get("value", ""),
                    reason=item.get("reason", ""),
                )
                for item in data.get("verification") or []
            ),
        )

    @staticmethod
    def _parse_config(data: dict[str, Any]) -> DomainDnsConfig:
        return DomainDnsConfig(
            misconfigured=bool(data.get("misconfigured", False)),
            recommended_cnames=_ranked_values(data.get("recommendedCNAME")),
            cnames=tuple(data.get("cnames") or ()),
            recommended_ipv4=_ranked_values(data.get("recommendedIPv4")),
            a_values=tuple(data.get("aValues") or ()),
        )


def _ranked_values(items: list[Any] | None) -> tuple[str, ...]:
    """
    Flatten a recommendation list, best rank first.

    Items are plain strings, or ``{"rank": n, "value": str | list[str]}``
    objects where a list value contributes its first entry.
    """
    if not items:
        return ()

    ranked: list[tuple[int, str]] = []
    for position, item in enumerate(items):
        if isinstance(item, str):
            ranked.append((position, item))
            continue
        value = item.get("value")
        if isinstance(value, list):
            value = value[0] if value else None
        if value:
            ranked.append((item.get("rank", position), value))

    return tuple(value for _, value in sorted(ranked, key=lambda pair: pair[0]))


def _json_object(response: httpx.Response) -> dict[str, Any]:
    """Response body as a JSON object, or an empty dict for anything else."""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
