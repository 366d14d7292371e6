"""Minimal Zendesk API client and the throttle back-off used by paginated fetches."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import requests

THROTTLE_STATUS = 503
DEFAULT_THROTTLE_DELAY = 30.0


@dataclass
class ApiResponse:
    """Outcome of a single GET: decoded body, success flag and HTTP status."""

    body: Any
    success: bool
    status: int
    detail: str = ''

    @property
    def throttled(self) -> bool:
        """Return True when the API asked us to slow down."""
        return self.status == THROTTLE_STATUS


@dataclass
class BackoffPolicy:
    """Fixed-delay wait between retries of a throttled request.

    ``attempts`` caps how many waits one request may take; ``None`` retries forever.
    """

    delay: float = DEFAULT_THROTTLE_DELAY
    attempts: int | None = None
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def allows(self, waited: int) -> bool:
        """Return True if another wait is allowed after ``waited`` waits."""
        return self.attempts is None or waited < self.attempts

    def wait(self) -> None:
        """Block for the configured delay."""
        self.sleep(self.delay)


class ZendeskClient:
    """Authenticated GET access to ``https://{subdomain}.zendesk.com``."""

    def __init__(self, subdomain: str, email: str, password: str, timeout: float | None = None) -> None:
        self.base_url = f'https://{subdomain}.zendesk.com'
        self.timeout = timeout
        self.session = requests.Session()
        self.session.auth = (email, password)

    def url(self, path: str) -> str:
        """Build the absolute URL for an API path."""
        return f'{self.base_url}/{path.lstrip("/")}'

    def get(self, path: str) -> ApiResponse:
        """GET ``path`` and decode the JSON body. Never raises for HTTP or transport errors."""
        url = self.url(path)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            return ApiResponse(body=None, success=False, status=0, detail=f'{url}: {e}')

        try:
            body = response.json()
        except ValueError:
            return ApiResponse(
                body=None,
                success=False,
                status=response.status_code,
                detail=f'{url}: HTTP {response.status_code}, undecodable body {response.text[:200]!r}',
            )

        success = 200 <= response.status_code < 300
        detail = '' if success else f'{url}: HTTP {response.status_code} {body!r}'
        return ApiResponse(body=body, success=success, status=response.status_code, detail=detail)
