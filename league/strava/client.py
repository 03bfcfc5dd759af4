"""Async Strava API client."""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from league.config import get_settings
from league.strava.exceptions import (
    AccessUnauthorized,
    MalformedPayload,
    ObjectNotFound,
    RateLimitExceeded,
    StravaException,
)
from league.strava.rate_limiter import RateLimitTracker, strava_rate_limiter
from league.strava.schemas import ActivitySchema, AthleteSchema

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0


class AsyncStravaClient:
    """Async HTTP client for the Strava API v3 endpoints a sync needs.

    Acts on behalf of one athlete's access token. Every failure surfaces as
    a ``StravaException`` subclass.
    """

    def __init__(
        self,
        access_token: str,
        rate_limiter: Optional[RateLimitTracker] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Strava API client.

        Parameters
        ----------
        access_token : str
            Valid Strava access token for the athlete
        rate_limiter : RateLimitTracker, optional
            Budget tracker. If None, the process-wide ``strava_rate_limiter``.
        base_url : str, optional
            API root; defaults to ``STRAVA_API_URL``
        transport : httpx.AsyncBaseTransport, optional
            Custom transport (tests use ``httpx.MockTransport``)
        """
        self.access_token = access_token
        self.rate_limiter = rate_limiter or strava_rate_limiter
        self.base_url = (base_url or get_settings().STRAVA_API_URL).rstrip("/")
        self.transport = transport

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Make an authenticated request and return the parsed JSON.

        Raises
        ------
        ObjectNotFound
            When resource not found (404)
        AccessUnauthorized
            When access is unauthorized (401)
        RateLimitExceeded
            When rate limit exceeded (429 or budget already spent)
        MalformedPayload
            When the body is not JSON
        StravaException
            For transport failures and other API errors
        """
        self.rate_limiter.check()

        url = f"{self.base_url}{endpoint}"
        headers = {"Authorization": f"Bearer {self.access_token}"}
        logger.debug(f"{method} {url} with params {params}")

        try:
            async with httpx.AsyncClient(
                transport=self.transport, timeout=REQUEST_TIMEOUT
            ) as client:
                response = await client.request(
                    method=method, url=url, params=params, headers=headers
                )
        except httpx.HTTPError as e:
            raise StravaException(f"Strava unreachable: {e}") from e

        self.rate_limiter.update(dict(response.headers))
        self._handle_errors(response)

        try:
            return response.json()
        except ValueError as e:
            raise MalformedPayload(f"Non-JSON response from {endpoint}") from e

    def _handle_errors(self, response: httpx.Response) -> None:
        """Translate HTTP error statuses into exceptions."""
        if response.is_success:
            return

        try:
            error_msg = response.json().get("message", response.text)
        except (ValueError, AttributeError):
            error_msg = response.text

        status = response.status_code
        if status == 404:
            raise ObjectNotFound(f"Not found: {error_msg}")
        elif status == 401:
            raise AccessUnauthorized(f"Unauthorized: {error_msg}")
        elif status == 429:
            raise RateLimitExceeded(f"Rate limit exceeded: {error_msg}")
        elif 400 <= status < 500:
            raise StravaException(f"Client error {status}: {error_msg}")
        else:
            raise StravaException(f"Server error {status}: {error_msg}")

    async def get_athlete(self) -> AthleteSchema:
        """Get the currently authenticated athlete.

        Raises
        ------
        MalformedPayload
            If the response is not an athlete object
        """
        data = await self._request("GET", "/athlete")
        try:
            return AthleteSchema.model_validate(data)
        except ValidationError as e:
            raise MalformedPayload(f"Unexpected athlete payload: {e}") from e

    async def get_activities(
        self,
        page: int = 1,
        per_page: int = 30,
        after: Optional[int] = None,
    ) -> list[ActivitySchema]:
        """List the athlete's activities, newest first.

        Parameters
        ----------
        page : int
            Page number (default: 1)
        per_page : int
            Number of items per page (default: 30, max: 200)
        after : int, optional
            Epoch timestamp; only activities starting after it

        Returns
        -------
        list[ActivitySchema]
            Parsed activities

        Raises
        ------
        MalformedPayload
            If the payload is not a list or an item cannot be parsed
        """
        params: dict[str, Any] = {"page": page, "per_page": min(per_page, 200)}
        if after:
            params["after"] = after

        data = await self._request("GET", "/athlete/activities", params=params)
        if not isinstance(data, list):
            raise MalformedPayload(
                f"Expected a list of activities, got {type(data).__name__}"
            )

        try:
            return [ActivitySchema.model_validate(item) for item in data]
        except ValidationError as e:
            raise MalformedPayload(f"Unexpected activity payload: {e}") from e
