"""HTTP client wrapper for the Contentful sync API."""

import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs, urlparse

import requests

from .auth import ContentfulAuth
from .errors import ContentConnectionError

logger = logging.getLogger(__name__)


class ContentfulAPIError(Exception):
    """Exception raised for Contentful API errors."""

    def __init__(self, message: str, status_code: int | None = None, response: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response = response


@dataclass
class SyncResponse:
    """One complete delta returned by the sync API."""

    entries: list[dict[str, Any]] = field(default_factory=list)
    assets: list[dict[str, Any]] = field(default_factory=list)
    deleted_entries: list[dict[str, Any]] = field(default_factory=list)
    deleted_assets: list[dict[str, Any]] = field(default_factory=list)
    next_sync_token: str = ""

    @property
    def deleted_entry_ids(self) -> list[str]:
        """IDs of entries reported deleted."""
        return [item["sys"]["id"] for item in self.deleted_entries]


def _link_target(value: Any) -> tuple[str, str] | None:
    """Get (linkType, id) if a value is an unresolved link."""
    if not isinstance(value, dict) or "fields" in value:
        return None
    sys = value.get("sys")
    if isinstance(sys, dict) and sys.get("type") == "Link":
        return sys.get("linkType", ""), sys.get("id", "")
    return None


def resolve_links(response: SyncResponse) -> None:
    """Replace link objects with the entries/assets they point to.

    Only targets present in the same response can be resolved; other links
    are left untouched. Resolution happens in place and may produce shared or
    circular references between entries.
    """
    index: dict[tuple[str, str], dict[str, Any]] = {}
    for entry in response.entries:
        index[("Entry", entry["sys"]["id"])] = entry
    for asset in response.assets:
        index[("Asset", asset["sys"]["id"])] = asset

    def resolve(value: Any) -> Any:
        if isinstance(value, list):
            return [resolve(item) for item in value]
        target = _link_target(value)
        if target is not None:
            return index.get(target, value)
        return value

    for item in index.values():
        for values in (item.get("fields") or {}).values():
            if isinstance(values, dict):
                for locale, value in values.items():
                    values[locale] = resolve(value)


class ContentfulClient:
    """HTTP client for the Contentful Content Delivery API."""

    def __init__(self, auth: ContentfulAuth | None = None, timeout: int = 30) -> None:
        """Initialize client with authentication.

        Args:
            auth: ContentfulAuth instance (creates one from env if not provided)
            timeout: Request timeout in seconds
        """
        self.auth = auth or ContentfulAuth()
        self.timeout = timeout
        self.session = requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        query_params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated request to the Contentful API.

        Args:
            method: HTTP method
            path: API path (without base URL)
            query_params: Optional query parameters

        Returns:
            Parsed JSON response

        Raises:
            ContentfulAPIError: On API errors
            ContentConnectionError: When the API cannot be reached
        """
        url = self.auth.get_full_url(path, query_params)

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=self.auth.get_headers(),
                timeout=self.timeout,
            )

            if response.status_code >= 400:
                error_msg = f"API error {response.status_code}: {response.text[:500]}"
                raise ContentfulAPIError(error_msg, response.status_code, response)

            # Handle empty responses
            if not response.content:
                return {}

            return response.json()  # type: ignore[no-any-return]

        except (requests.ConnectionError, requests.Timeout) as e:
            raise ContentConnectionError(f"Contentful unreachable: {e}") from e
        except requests.RequestException as e:
            raise ContentfulAPIError(f"Request failed: {e}") from e

    def get(
        self,
        path: str,
        query_params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Make a GET request."""
        return self._request("GET", path, query_params)

    # -------------------------------------------------------------------------
    # Sync Operations
    # -------------------------------------------------------------------------

    @staticmethod
    def _token_from_url(url: str) -> str:
        """Extract the sync_token query parameter from a sync URL."""
        tokens = parse_qs(urlparse(url).query).get("sync_token", [])
        return tokens[0] if tokens else ""

    def sync(self, initial: bool = False, sync_token: str | None = None) -> SyncResponse:
        """Fetch every change since a sync token, or the full set.

        All pages are followed until the API hands out the token for the
        next sync.

        Args:
            initial: Request the complete content set
            sync_token: Token from a previous sync (ignored when initial)

        Returns:
            SyncResponse with links resolved within the delta
        """
        if not initial and not sync_token:
            raise ValueError("Either initial or sync_token is required")

        path = f"{self.auth.environment_path}/sync"
        params = {"initial": "true"} if initial else {"sync_token": sync_token or ""}
        result = SyncResponse()
        pages = 0

        while True:
            page = self.get(path, params)
            pages += 1

            for item in page.get("items", []):
                item_type = item.get("sys", {}).get("type")
                if item_type == "Entry":
                    result.entries.append(item)
                elif item_type == "Asset":
                    result.assets.append(item)
                elif item_type == "DeletedEntry":
                    result.deleted_entries.append(item)
                elif item_type == "DeletedAsset":
                    result.deleted_assets.append(item)

            if page.get("nextPageUrl"):
                params = {"sync_token": self._token_from_url(page["nextPageUrl"])}
                continue

            result.next_sync_token = self._token_from_url(page.get("nextSyncUrl", ""))
            break

        if not result.next_sync_token:
            raise ContentfulAPIError("Sync response did not include a nextSyncUrl")

        logger.debug(
            f"Fetched {pages} sync page(s): {len(result.entries)} entries, "
            f"{len(result.deleted_entries)} deleted entries"
        )
        resolve_links(result)
        return result

    # -------------------------------------------------------------------------
    # Health Check
    # -------------------------------------------------------------------------

    def verify_connection(self) -> bool:
        """Verify API connectivity and authentication.

        Returns:
            True if connection successful

        Raises:
            ContentfulAPIError: On auth failure
            ContentConnectionError: When the API cannot be reached
        """
        response = self.get(f"/spaces/{self.auth.space}")
        return "sys" in response
