"""
Thread-safe HTTP transport for the pricing, order lookup and cart webhooks.

All remote endpoints this service talks to are plain JSON-over-HTTP
webhooks (plus two GraphQL endpoints that are POSTed the same way). This
module wraps a single requests.Session and turns every failure mode into a
RemoteServiceError subclass chosen by the caller, so services only ever
deal with parsed JSON or one exception type.

THREAD SAFETY:
    - One WebhookClient is shared by the aggregator's worker threads
    - requests.Session connection pooling is safe for concurrent requests
    - No per-request state is stored on the client

TIMEOUTS:
    Every request carries an explicit timeout (default 10s). There are no
    retries - pricing falls back to catalog prices and cart sync is
    best-effort, so a failed call is simply reported.

Usage:
    client = WebhookClient(timeout_seconds=10.0)

    data = client.post_json(url, {"sku": "A1"}, error_cls=PricingSourceError)
    data = client.get_json(url, params={"orderId": "1869"}, error_cls=OrderLookupError)
    pdf = client.get_bytes(invoice_url, error_cls=StorefrontError)

    client.close()
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Type

import requests
from requests.exceptions import RequestException, Timeout

from logging_config import get_logger

from .exceptions import RemoteServiceError


DEFAULT_TIMEOUT_SECONDS = 10.0

JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class WebhookClient:
    """
    Shared HTTP client for webhook and GraphQL calls.

    Attributes:
        timeout_seconds: Per-request timeout applied to every call
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the client.

        Args:
            timeout_seconds: Request timeout in seconds (must be positive)
            session: Pre-built requests.Session (tests inject a mock here)
            logger: Logger instance (creates default if not provided)

        Raises:
            ValueError: If timeout_seconds is not positive
        """
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._logger = logger or get_logger(__name__)

    @property
    def timeout_seconds(self) -> float:
        """Per-request timeout in seconds."""
        return self._timeout

    def post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        error_cls: Type[RemoteServiceError] = RemoteServiceError,
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        POST a JSON body and return the decoded JSON response.

        Args:
            url: Endpoint URL
            payload: JSON-serialisable request body
            error_cls: RemoteServiceError subclass raised on failure
            headers: Extra headers merged over the JSON defaults

        Returns:
            Decoded JSON (dict, list or scalar)

        Raises:
            error_cls: On transport error, non-2xx status or invalid JSON
        """
        try:
            body = json.dumps(payload)
        except (TypeError, ValueError) as e:
            raise error_cls(f"Failed to serialize request body: {e}")

        response = self._send("POST", url, error_cls, data=body, headers=headers)
        return self._decode_json(response, url, error_cls)

    def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        error_cls: Type[RemoteServiceError] = RemoteServiceError,
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        GET a URL and return the decoded JSON response.

        Raises:
            error_cls: On transport error, non-2xx status or invalid JSON
        """
        response = self._send("GET", url, error_cls, params=params, headers=headers)
        return self._decode_json(response, url, error_cls)

    def get_bytes(
        self,
        url: str,
        error_cls: Type[RemoteServiceError] = RemoteServiceError
    ) -> bytes:
        """
        GET a URL and return the raw body (used for invoice PDFs).

        Raises:
            error_cls: On transport error, non-2xx status or empty body
        """
        response = self._send("GET", url, error_cls, headers={"Accept": "application/pdf"})
        content = response.content
        if not content:
            raise error_cls(f"Empty response body from {url}", status_code=response.status_code)
        return content

    def close(self) -> None:
        """Close the underlying session and its pooled connections."""
        self._session.close()

    def _send(
        self,
        method: str,
        url: str,
        error_cls: Type[RemoteServiceError],
        headers: Optional[Dict[str, str]] = None,
        **kwargs: Any
    ) -> requests.Response:
        """
        Execute a single request and check its status.

        Non-2xx responses raise error_cls with the response text attached,
        so callers can log what the remote side complained about.
        """
        merged_headers = dict(JSON_HEADERS)
        if headers:
            merged_headers.update(headers)

        self._logger.debug(f"{method} {url}")

        try:
            response = self._session.request(
                method,
                url,
                headers=merged_headers,
                timeout=self._timeout,
                **kwargs
            )
        except Timeout as e:
            self._logger.warning(f"{method} {url} timed out after {self._timeout}s")
            raise error_cls(f"Request to {url} timed out after {self._timeout}s") from e
        except RequestException as e:
            self._logger.warning(f"{method} {url} failed: {e}")
            raise error_cls(f"Request to {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            body = _safe_text(response)
            self._logger.warning(f"{method} {url} returned HTTP {response.status_code}")
            raise error_cls(
                f"HTTP {response.status_code} from {url}",
                status_code=response.status_code,
                body=body
            )

        return response

    def _decode_json(
        self,
        response: requests.Response,
        url: str,
        error_cls: Type[RemoteServiceError]
    ) -> Any:
        try:
            return response.json()
        except ValueError as e:
            self._logger.warning(f"Invalid JSON from {url}: {e}")
            raise error_cls(
                f"Invalid JSON in response from {url}",
                status_code=response.status_code,
                body=_safe_text(response)
            ) from e


def _safe_text(response: requests.Response) -> str:
    """Response body as text, or empty string if it cannot be read."""
    try:
        return response.text or ""
    except (UnicodeDecodeError, RequestException):
        return ""
