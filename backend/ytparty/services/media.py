import logging
import re
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from ytparty.config import get_settings
from ytparty.models.state import VIDEO_ID_PATTERN, VideoMetadata

logger = logging.getLogger(__name__)

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/26.0.1 Safari/605.1.15"
)

_video_id_re = re.compile(VIDEO_ID_PATTERN)


class FetchError(Exception):
    pass


def is_valid_video_id(video_id) -> bool:
    return isinstance(video_id, str) and _video_id_re.match(video_id) is not None


def parse_video_metadata(video_id: str, html: str) -> VideoMetadata:
    soup = BeautifulSoup(html, "html.parser")

    def content(tag) -> Optional[str]:
        if tag and tag.get("content"):
            return tag["content"]
        return None

    title = content(soup.find("meta", property="og:title"))
    author = content(soup.select_one('span[itemprop="author"] link[itemprop="name"]'))
    thumbnail = content(soup.find("meta", property="og:image"))

    missing = [name for name, value in (("title", title), ("author", author), ("thumbnail", thumbnail)) if not value]
    if missing:
        raise FetchError(f"Video {video_id} page is missing {', '.join(missing)}")

    return VideoMetadata(id=video_id, title=title, author=author, thumbnail=thumbnail)


def _make_client() -> httpx.AsyncClient:
    settings = get_settings()
    return httpx.AsyncClient(
        headers={"User-Agent": USER_AGENT},
        timeout=httpx.Timeout(settings.metadata_fetch_timeout),
        proxy=settings.proxy_url,
        follow_redirects=True,
    )


async def fetch_video_metadata(video_id: str, client: Optional[httpx.AsyncClient] = None) -> VideoMetadata:
    """
    Scrape title, author and thumbnail from the video's watch page.
    Raises FetchError on transport errors, non-2xx responses or missing fields.
    """
    if client is None:
        async with _make_client() as own_client:
            return await fetch_video_metadata(video_id, own_client)

    try:
        response = await client.get(WATCH_URL.format(video_id=video_id), headers={"User-Agent": USER_AGENT})
    except httpx.HTTPError as e:
        raise FetchError(f"Failed to fetch video metadata: {e}") from e

    if not response.is_success:
        raise FetchError(f"Failed to fetch video metadata. Status code: {response.status_code}")

    return parse_video_metadata(video_id, response.text)
