"""
Registry client for querying the npm registry.

One GET per package; any failure is reported as "not found" with the
cause kept for logging.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from httpx import HTTPStatusError, RequestError

from .cli_config import get_config
from .error_handling import log_network_error
from .structured_logging import log_registry_check

UNKNOWN_VERSION = "unknown"


@dataclass(frozen=True)
class RegistryCheckResult:
    """Result of checking a package in the registry."""

    package_name: str
    exists: bool
    latest_version: Optional[str] = None
    error: Optional[str] = None
    check_duration_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"package": self.package_name, "exists": self.exists}
        if self.exists:
            data["latest_version"] = self.latest_version
        if self.error:
            data["error"] = self.error
        return data


class NPMClient:
    """
    Client for the npm registry.

    Uses the async context manager pattern: the httpx.AsyncClient is created
    on entry and closed on exit.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        network = get_config().network
        self.base_url = (base_url or network.registry_url).rstrip("/")
        self.timeout = timeout or network.timeout_seconds
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None
        self._headers = {
            "User-Agent": network.user_agent,
            "Accept": "application/json",
        }

    async def __aenter__(self):
        """Initialize the HTTP client when entering the context."""
        self.client = httpx.AsyncClient(
            timeout=self.timeout, headers=self._headers, transport=self.transport
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Clean up the HTTP client when exiting the context."""
        if self.client:
            await self.client.aclose()
            self.client = None

    def package_url(self, package_name: str) -> str:
        # Scoped names keep the leading @ and encode the slash
        return f"{self.base_url}/{quote(package_name.strip(), safe='@')}"

    async def check_package_exists(self, package_name: str) -> RegistryCheckResult:
        """
        Check if an npm package exists on the registry.

        Args:
            package_name: The name of the package to check

        Returns:
            RegistryCheckResult: exists with the latest version, or not found
        """
        start_time = time.monotonic()

        if self.client is None:
            raise RuntimeError(
                "HTTP client not initialized - use within async context manager"
            )

        if not package_name or not package_name.strip():
            return self._not_found(package_name, "Invalid package name", start_time)

        url = self.package_url(package_name)
        try:
            response = await self.client.get(url)
            response.raise_for_status()
            data = response.json()
        except HTTPStatusError as e:
            status_code = e.response.status_code
            log_network_error(
                f"Registry returned HTTP {status_code} for {package_name}",
                "registry_clients",
                "check_package_exists",
                url=url,
                status_code=status_code,
            )
            return self._not_found(package_name, f"HTTP {status_code}", start_time)
        except RequestError as e:
            log_network_error(
                f"Network error looking up {package_name}",
                "registry_clients",
                "check_package_exists",
                url=url,
                exception=e,
            )
            return self._not_found(package_name, f"Network error: {e}", start_time)
        except ValueError as e:
            log_network_error(
                f"Registry response for {package_name} is not JSON",
                "registry_clients",
                "check_package_exists",
                url=url,
                exception=e,
            )
            return self._not_found(package_name, "Invalid JSON response", start_time)

        dist_tags = data.get("dist-tags") if isinstance(data, dict) else None
        latest = dist_tags.get("latest") if isinstance(dist_tags, dict) else None

        result = RegistryCheckResult(
            package_name=package_name,
            exists=True,
            latest_version=str(latest) if latest else UNKNOWN_VERSION,
            check_duration_ms=int((time.monotonic() - start_time) * 1000),
        )
        log_registry_check(
            package_name, True, result.latest_version, result.check_duration_ms
        )
        return result

    def _not_found(
        self, package_name: str, error: str, start_time: float
    ) -> RegistryCheckResult:
        result = RegistryCheckResult(
            package_name=package_name,
            exists=False,
            error=error,
            check_duration_ms=int((time.monotonic() - start_time) * 1000),
        )
        log_registry_check(
            package_name, False, response_time_ms=result.check_duration_ms
        )
        return result


def get_registry_client(
    base_url: Optional[str] = None, timeout: Optional[float] = None
) -> NPMClient:
    """Factory function for the registry client."""
    return NPMClient(base_url=base_url, timeout=timeout)
