"""
Track API Client - httpx wrapper around the workout tracking endpoints.

HTTP failures are mapped onto the tracking error taxonomy so the sync
queue can decide between retrying and dropping an entry.
"""
from typing import Any, Dict, Optional

import httpx

from tribe_track.client.context import ClientContext
from tribe_track.core.config import settings
from tribe_track.core.errors import (
    ConflictError,
    NotFoundError,
    TrackError,
    TransientError,
    ValidationError,
)
from tribe_track.core.logging import get_logger
from tribe_track.schemas.track import (
    CreateWorkoutLogRequest,
    CreateWorkoutLogResponse,
    TrackStatsResponse,
)

logger = get_logger(__name__)


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return f"HTTP {response.status_code}"


def error_for_response(response: httpx.Response) -> TrackError:
    """Translate a non-2xx response into a tracking error."""
    status = response.status_code
    detail = _error_detail(response)

    if status in (400, 422):
        field = None
        try:
            body = response.json()
            if isinstance(body, dict):
                field = body.get("field")
        except ValueError:
            pass
        return ValidationError(detail, field=field)
    if status == 404:
        return NotFoundError(detail)
    if status == 409:
        return ConflictError(detail)
    # 401/403 are resolved by signing in again, 5xx and 429 by waiting
    return TransientError(f"{detail} (HTTP {status})")


class TrackApiClient:
    """
    Async client for the tracking API.

    Usage:
        async with TrackApiClient(context) as api:
            response = await api.create_log(request)
    """

    def __init__(
        self,
        context: ClientContext,
        http: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None
    ):
        self.context = context
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            base_url=context.api_base_url,
            timeout=timeout if timeout is not None else settings.SYNC_REQUEST_TIMEOUT,
        )

    async def __aenter__(self) -> "TrackApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = await self.http.request(
                method,
                path,
                headers=self.context.auth_headers(),
                **kwargs
            )
        except httpx.TimeoutException as e:
            raise TransientError(f"Request timed out: {method} {path}") from e
        except httpx.TransportError as e:
            raise TransientError(f"Network unavailable: {e}") from e

        if response.is_error:
            error = error_for_response(response)
            logger.warning(
                "Track API request failed",
                method=method,
                path=path,
                status=response.status_code,
                error_type=type(error).__name__
            )
            raise error

        return response.json()

    async def create_log(self, request: CreateWorkoutLogRequest) -> CreateWorkoutLogResponse:
        """Submit a workout log; safe to repeat when clientId is set."""
        data = await self._request(
            "POST",
            "/api/track/logs",
            json=request.model_dump(exclude_none=True),
        )
        return CreateWorkoutLogResponse.model_validate(data)

    async def get_stats(self) -> TrackStatsResponse:
        """Fetch the current stats read model."""
        data = await self._request("GET", "/api/track/stats")
        return TrackStatsResponse.model_validate(data)
