import json
import logging
import re
from typing import Any, Dict, List, Optional

import httpx
from yt_dlp.utils import DownloadError

from unisaver.core.config import settings
from unisaver.core.errors import AuthRequiredError, ExtractionError
from unisaver.models.schemas import ExtractionResult, MediaFormat
from unisaver.services import fetch, ytdl
from unisaver.services.detector import instagram_shortcode
from unisaver.services.extractors.base import PlatformExtractor
from unisaver.services.formats import ext_from, media_type_of, mime_for

logger = logging.getLogger(__name__)

API_HEADERS = {
    'Accept': 'application/json, text/plain, */*',
    'Accept-Language': 'en-US,en;q=0.9',
    'X-IG-App-ID': '936619743392459',
    'X-ASBD-ID': '129477',
    'X-IG-WWW-Claim': '0',
    'Sec-Fetch-Dest': 'empty',
    'Sec-Fetch-Mode': 'cors',
    'Sec-Fetch-Site': 'same-origin',
}

API_ENDPOINTS = (
    "https://www.instagram.com/api/v1/media/{code}/info/",
    "https://i.instagram.com/api/v1/media/{code}/info/",
    "https://www.instagram.com/p/{code}/?__a=1&__d=dis",
)

PAGE_JSON_PATTERNS = (
    r'window\._sharedData\s*=\s*({.+?});</script>',
    r'window\.__additionalDataLoaded\([^,]+,\s*({.+?})\);</script>',
    r'"gql_data":\s*({.+?})\s*[,}]\s*"',
)

MEDIA_FIELDS = ('video_url', 'display_url', 'src', 'url')
AUTH_MARKERS = ('Sign in to confirm', 'private', 'login_required', 'login required')

_MEDIA_URL_RE = re.compile(r'\.(mp4|m4v|jpg|jpeg|png|webp)(\?|#|$)', re.IGNORECASE)


def _is_media_url(value: str) -> bool:
    if not re.match(r'^https?://', value, re.IGNORECASE):
        return False
    return ('cdninstagram.com' in value or 'fbcdn.net' in value or 'scontent' in value
            or bool(_MEDIA_URL_RE.search(value)))


def extract_urls_from_data(data: Any) -> List[str]:
    """Collect every media CDN URL nested anywhere in an API/page JSON payload."""
    urls: List[str] = []

    def add(value):
        if value not in urls:
            urls.append(value)

    def traverse(obj):
        if isinstance(obj, str):
            if _is_media_url(obj):
                add(obj)
        elif isinstance(obj, list):
            for item in obj:
                traverse(item)
        elif isinstance(obj, dict):
            for field in MEDIA_FIELDS:
                value = obj.get(field)
                if isinstance(value, str) and value.startswith('http'):
                    add(value)
            for value in obj.values():
                traverse(value)

    traverse(data)
    return urls


def extract_metadata(data: Any) -> Dict[str, str]:
    """Pull a caption-ish title and a thumbnail from the shapes Instagram has used."""
    item = data
    if isinstance(data, dict) and isinstance(data.get('items'), list) and data['items']:
        item = data['items'][0]
    elif isinstance(data, dict) and isinstance(data.get('graphql'), dict):
        item = data['graphql'].get('shortcode_media') or data['graphql']
    if not isinstance(item, dict):
        item = {}

    edges = ((item.get('edge_media_to_caption') or {}).get('edges') or [{}])
    candidates = (item.get('image_versions2') or {}).get('candidates') or [{}]
    title_sources = (
        (item.get('caption') or {}).get('text') if isinstance(item.get('caption'), dict) else None,
        (edges[0].get('node') or {}).get('text'),
        item.get('accessibility_caption'),
        item.get('alt_text'),
        item.get('title'),
    )
    thumbnail_sources = (
        item.get('thumbnail_url'),
        item.get('display_url'),
        candidates[0].get('url'),
        item.get('thumbnail'),
        item.get('image'),
    )

    title = next((s.strip()[:100] for s in title_sources if isinstance(s, str) and s.strip()),
                 'Instagram Media')
    thumbnail = next((s for s in thumbnail_sources if isinstance(s, str) and s.startswith('http')), '')
    return {'title': title, 'thumbnail': thumbnail}


def is_video_url(url: str) -> bool:
    u = url.lower()
    if 'video' in u or '.mp4' in u or '.m4v' in u:
        return True
    return not any(marker in u for marker in ('photo', '.jpg', '.jpeg', '.png', '.webp'))


def media_format(url: str, index: int) -> MediaFormat:
    is_video = is_video_url(url)
    ext = 'mp4' if is_video else ext_from(url, 'jpg')
    return MediaFormat(
        itag=f"ig_{index}",
        quality='Original',
        url=url,
        mime_type=mime_for(ext),
        has_audio=is_video,
        has_video=is_video,
        container=ext,
        audio_bitrate=128 if is_video else 0,
        video_codec='h264' if is_video else 'none',
        audio_codec='aac' if is_video else 'none',
    )


class InstagramExtractor(PlatformExtractor):
    name = "instagram"
    label = "Instagram"
    default_title = "Instagram Media"
    strategies = ("api", "page", "ydl")

    async def extract(self, url: str) -> ExtractionResult:
        if 'instagram.com' not in url:
            raise ExtractionError("Invalid Instagram URL")
        return await super().extract(url)

    @property
    def cookie(self) -> Optional[str]:
        return settings.IG_COOKIE_STRING.strip() or None

    def from_urls(self, urls: List[str], title: str, thumbnail: str,
                  duration: Optional[float] = None) -> ExtractionResult:
        formats = [media_format(u, i) for i, u in enumerate(urls)]
        return ExtractionResult(
            title=title or self.default_title,
            thumbnail=thumbnail or '',
            duration=duration or None,
            media_type=media_type_of(formats),
            formats=formats,
            source=self.name,
        )

    async def _strategy_api(self, url: str) -> Optional[ExtractionResult]:
        code = instagram_shortcode(url)
        if not code:
            raise ExtractionError("Could not extract shortcode from URL")

        headers = {'User-Agent': settings.MOBILE_USER_AGENT, **API_HEADERS}
        if self.cookie:
            headers['Cookie'] = self.cookie

        async with fetch.client(timeout=15) as http:
            for endpoint in API_ENDPOINTS:
                endpoint = endpoint.format(code=code)
                try:
                    resp = await http.get(endpoint, headers=headers)
                    resp.raise_for_status()
                    data = resp.json()
                except (httpx.HTTPError, ValueError) as e:
                    logger.info("[-] API endpoint failed: %s - %s", endpoint, e)
                    continue

                urls = extract_urls_from_data(data)
                if urls:
                    meta = extract_metadata(data)
                    return self.from_urls(urls, meta['title'], meta['thumbnail'])
        return None

    def parse_page(self, html: str) -> Optional[ExtractionResult]:
        for pattern in PAGE_JSON_PATTERNS:
            match = re.search(pattern, html, re.DOTALL)
            if not match:
                continue
            try:
                data = json.loads(match.group(1))
            except ValueError as e:
                logger.info("[-] Failed to parse JSON from page: %s", e)
                continue
            urls = extract_urls_from_data(data)
            if urls:
                meta = extract_metadata(data)
                return self.from_urls(urls, meta['title'], meta['thumbnail'])
        return None

    async def _strategy_page(self, url: str) -> Optional[ExtractionResult]:
        html = await fetch.fetch_page(url, cookie=self.cookie)
        return self.parse_page(html)

    async def _strategy_ydl(self, url: str) -> ExtractionResult:
        try:
            info = await ytdl.extract_info(
                url,
                referer=self.referer,
                user_agent=settings.MOBILE_USER_AGENT,
                cookiefile=settings.IG_COOKIES_FILE or None,
                cookie=self.cookie,
            )
        except DownloadError as e:
            message = str(e)
            if any(marker in message for marker in AUTH_MARKERS):
                raise AuthRequiredError(
                    "This Instagram content requires authentication. Please set IG_COOKIE_STRING "
                    "or IG_COOKIES_FILE with valid Instagram cookies from your browser."
                ) from e
            raise

        urls = []
        for candidate in [info.get('url')] + [f.get('url') for f in info.get('formats') or []]:
            if candidate and candidate not in urls:
                urls.append(candidate)
        if not urls:
            raise ExtractionError("No URLs found in yt-dlp response")

        return self.from_urls(urls, info.get('title') or info.get('fulltitle'),
                              info.get('thumbnail'), info.get('duration'))


extractor = InstagramExtractor()
