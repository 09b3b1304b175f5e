"""Feed discovery and source lookup endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from radar.core.deps import get_channel_resolver, get_feed_discoverer
from radar.core.logging import get_logger
from radar.routers.api.models import DiscoveryResponse, UrlRequest
from radar.services.channel_resolver import ChannelResolver
from radar.services.feed_discovery import FeedDiscoverer
from radar.services.source_lookup import SourceInfo, SourceLookupService

logger = get_logger(__name__)

router = APIRouter(tags=["discovery"])


def _require_url(request: UrlRequest) -> str:
    if not request.url or not request.url.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="URL is required")
    return request.url.strip()


@router.post("/rss/discover", response_model=DiscoveryResponse)
def discover_feeds(
    request: UrlRequest,
    discoverer: Annotated[FeedDiscoverer, Depends(get_feed_discoverer)],
) -> DiscoveryResponse:
    """Find RSS/Atom feeds for a page URL."""
    url = _require_url(request)
    result = discoverer.discover(url)
    if not result.feeds:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No feeds found")
    return DiscoveryResponse(feeds=result.feeds, page_title=result.page_title)


@router.post("/sources/lookup", response_model=SourceInfo)
def lookup_source(
    request: UrlRequest,
    resolver: Annotated[ChannelResolver, Depends(get_channel_resolver)],
    discoverer: Annotated[FeedDiscoverer, Depends(get_feed_discoverer)],
) -> SourceInfo:
    """Describe a pasted URL as a YouTube channel, X profile or RSS source."""
    url = _require_url(request)
    try:
        info = SourceLookupService(resolver, discoverer).lookup(url)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    if info is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Source not found")
    return info
