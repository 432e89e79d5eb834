"""
Base API client for Genrarr media server integrations.
Provides common functionality for rate limiting, request handling, and error parsing.
"""

import logging
import time
import requests
from typing import Any, Dict, Optional

logger = logging.getLogger('genrarr')


class APIError(Exception):
    """Raised when a media server API request fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BaseAPIClient:
    """
    Base class for API clients with common rate limiting and request handling.

    Subclasses should:
    - Set `api_name` class attribute for error messages
    - Override `_get_headers()` to return auth headers
    - Override `_build_url()` if URL construction differs
    """

    api_name: str = "API"
    rate_limit_delay: float = 0.0
    request_timeout: int = 30

    def __init__(self, base_url: str, verify_ssl: bool = True):
        """Initialize base client state."""
        self.base_url = base_url.rstrip('/')
        self.verify_ssl = verify_ssl
        self._last_request_time = 0

    def _rate_limit(self) -> None:
        """Enforce rate limiting between requests."""
        if self.rate_limit_delay <= 0:
            return
        elapsed = time.time() - self._last_request_time
        if elapsed < self.rate_limit_delay:
            time.sleep(self.rate_limit_delay - elapsed)
        self._last_request_time = time.time()

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API requests. Override in subclass."""
        return {"Content-Type": "application/json"}

    def _build_url(self, endpoint: str) -> str:
        """Build full URL from base and endpoint. Override if needed."""
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _parse_error_response(self, response: requests.Response) -> str:
        """
        Parse error message from response body.

        Handles a dict with 'message', 'error' or 'title' key, otherwise
        returns the raw response text.

        Args:
            response: Failed HTTP response

        Returns:
            Extracted error message or raw response text
        """
        error_msg = response.text
        try:
            error_data = response.json()
            if isinstance(error_data, dict):
                error_msg = error_data.get(
                    'message', error_data.get('error', error_data.get('title', error_msg))
                )
        except ValueError as e:
            logger.debug(f"Failed to parse error response JSON: {e}")
        return error_msg

    def _handle_response(self, response: requests.Response) -> Any:
        """
        Handle HTTP response, raising exceptions for errors.

        Args:
            response: HTTP response object

        Returns:
            Parsed JSON response or None for 204/404/empty bodies

        Raises:
            APIError: For HTTP errors
        """
        if response.status_code == 401:
            raise APIError(f"{self.api_name} rejected the API key", status_code=401)
        elif response.status_code == 404:
            return None
        elif response.status_code >= 400:
            error_msg = self._parse_error_response(response)
            raise APIError(
                f"{self.api_name} error {response.status_code}: {error_msg}",
                status_code=response.status_code
            )

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise APIError(
                f"{self.api_name} returned invalid JSON ({response.status_code})",
                status_code=response.status_code
            ) from e

    def _make_request(self, method: str, endpoint: str,
                      data: Optional[Dict] = None,
                      params: Optional[Dict] = None) -> Any:
        """
        Make an HTTP request with rate limiting and error handling.

        Args:
            method: HTTP method (GET, POST, DELETE, etc.)
            endpoint: API endpoint relative to the base URL
            data: Request body data (will be JSON encoded)
            params: Query parameters

        Returns:
            Response JSON data or None

        Raises:
            APIError: If request fails
        """
        self._rate_limit()

        url = self._build_url(endpoint)

        try:
            response = requests.request(
                method=method,
                url=url,
                headers=self._get_headers(),
                json=data,
                params=params,
                timeout=self.request_timeout,
                verify=self.verify_ssl
            )
            return self._handle_response(response)

        except requests.exceptions.Timeout:
            raise APIError(f"Request timeout after {self.request_timeout}s")
        except requests.exceptions.ConnectionError:
            raise APIError(f"Could not connect to {self.api_name} at {self.base_url}")
        except requests.exceptions.RequestException as e:
            raise APIError(f"Request failed: {e}")
