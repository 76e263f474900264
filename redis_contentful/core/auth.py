"""Bearer-token authentication for the Contentful Content Delivery API."""

import os
from urllib.parse import urlencode

from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://cdn.contentful.com"


class ContentfulAuth:
    """Holds Contentful credentials and builds authenticated requests."""

    def __init__(
        self,
        space: str | None = None,
        access_token: str | None = None,
        environment: str | None = None,
        base_url: str | None = None,
    ) -> None:
        """Initialize authentication with credentials.

        Args:
            space: Contentful space ID (or load from CONTENTFUL_SPACE_ID env)
            access_token: Delivery API token (or load from CONTENTFUL_ACCESS_TOKEN env)
            environment: Space environment (or CONTENTFUL_ENVIRONMENT env, default "master")
            base_url: API base URL (or load from CONTENTFUL_BASE_URL env)
        """
        load_dotenv()

        self.space = space or os.getenv("CONTENTFUL_SPACE_ID", "")
        self.access_token = access_token or os.getenv("CONTENTFUL_ACCESS_TOKEN", "")
        self.environment = environment or os.getenv("CONTENTFUL_ENVIRONMENT", "master")
        self.base_url = (base_url or os.getenv("CONTENTFUL_BASE_URL", DEFAULT_BASE_URL)).rstrip("/")

        if not self.space or not self.access_token:
            raise ValueError(
                "Missing Contentful credentials. Set CONTENTFUL_SPACE_ID and "
                "CONTENTFUL_ACCESS_TOKEN environment variables or pass them directly."
            )

    @property
    def environment_path(self) -> str:
        """API path prefix for the configured space environment."""
        return f"/spaces/{self.space}/environments/{self.environment}"

    def get_headers(self) -> dict[str, str]:
        """Generate authentication headers for an API request."""
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }

    def get_full_url(self, path: str, query_params: dict[str, str] | None = None) -> str:
        """Build full URL from base URL, path, and query params.

        Args:
            path: API path (e.g., /spaces/abc/environments/master/sync)
            query_params: Optional query parameters

        Returns:
            Full URL string
        """
        url = f"{self.base_url}{path}"
        if query_params:
            url += "?" + urlencode(sorted(query_params.items()))
        return url

    def verify_credentials(self) -> bool:
        """Verify that credentials are set (does not test API connectivity)."""
        return bool(self.space and self.access_token and self.base_url)
