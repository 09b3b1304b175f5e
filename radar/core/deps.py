"""FastAPI dependencies for the ingestion endpoints."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from radar.core.settings import Settings, get_settings
from radar.scraping.runner import FetchRunner
from radar.services.channel_resolver import ChannelResolver
from radar.services.feed_discovery import FeedDiscoverer
from radar.services.http import HttpService, get_http_service

optional_security = HTTPBearer(auto_error=False)


def get_http() -> HttpService:
    return get_http_service()


def get_feed_discoverer(http: Annotated[HttpService, Depends(get_http)]) -> FeedDiscoverer:
    return FeedDiscoverer(http)


def get_channel_resolver(http: Annotated[HttpService, Depends(get_http)]) -> ChannelResolver:
    return ChannelResolver(http)


def get_fetch_runner() -> FetchRunner:
    return FetchRunner()


def require_cron_secret(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(optional_security)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """
    Guard scheduler endpoints with ``Authorization: Bearer <CRON_SECRET>``.

    Open when no secret is configured (local development).

    Raises:
        HTTPException: 401 if a secret is configured and the token does not match
    """
    if not settings.cron_secret:
        return
    if credentials is None or credentials.credentials != settings.cron_secret:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
