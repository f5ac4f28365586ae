import logging
from typing import Any, Dict, List, Optional, Tuple

from unisaver.core.errors import AuthRequiredError, ExtractionError
from unisaver.models.schemas import ExtractionResult, MediaFormat
from unisaver.services import fetch, ytdl
from unisaver.services.detector import PLATFORM_REFERERS
from unisaver.services.formats import as_format, formats_from_ytdl, media_type_of
from unisaver.services.scrape import meta_content, page_title

logger = logging.getLogger(__name__)


class PlatformExtractor:
    """
    An ordered fallback chain of extraction strategies for one platform.

    Each name in ``strategies`` resolves to a ``_strategy_<name>`` coroutine
    taking the page URL. The first strategy that returns media wins; errors
    are logged and the next strategy is tried.
    """

    name = "generic"
    label = "Media"
    default_title = "Media"
    strategies: Tuple[str, ...] = ("ydl",)
    ydl_prefer = "progressive"

    @property
    def referer(self) -> Optional[str]:
        return PLATFORM_REFERERS.get(self.name)

    async def extract(self, url: str) -> ExtractionResult:
        last_error: Optional[Exception] = None

        for name in self.strategies:
            strategy = getattr(self, f"_strategy_{name}")
            logger.info("[*] %s: trying strategy %s", self.label, name)
            try:
                result = await strategy(url)
            except AuthRequiredError:
                raise
            except Exception as e:
                logger.warning("[-] %s: %s failed: %s", self.label, name, e)
                last_error = e
                continue

            if result is not None and result.has_media:
                result.extracted_by = result.extracted_by or name
                logger.info("[+] %s: %s succeeded with %d formats", self.label, name, len(result.formats))
                return result
            logger.info("[-] %s: %s returned no media", self.label, name)

        if last_error is not None:
            raise ExtractionError(str(last_error) or last_error.__class__.__name__) from last_error
        raise ExtractionError(f"All {self.label} extraction methods failed - no playable media found")

    def build_result(self, formats: List[MediaFormat], title: Optional[str] = None,
                     thumbnail: Optional[str] = None, duration: Optional[float] = None,
                     **extra) -> ExtractionResult:
        best = next((f for f in formats if f.has_video), formats[0] if formats else None)
        return ExtractionResult(
            title=title or self.default_title,
            thumbnail=thumbnail or "",
            duration=duration or None,
            media_type=media_type_of(formats),
            formats=formats,
            direct_url=best.url if best else None,
            quality=best.quality if best else None,
            source=self.name,
            **extra,
        )

    def ydl_options(self, url: str) -> Dict[str, Any]:
        return {"referer": self.referer}

    async def _strategy_ydl(self, url: str) -> ExtractionResult:
        info = await ytdl.extract_info(url, **self.ydl_options(url))
        formats = formats_from_ytdl(info, prefer=self.ydl_prefer)
        if not formats:
            raise ExtractionError(f"yt-dlp found no usable {self.label} formats")
        return self.build_result(
            formats,
            title=info.get('title') or info.get('fulltitle'),
            thumbnail=info.get('thumbnail'),
            duration=info.get('duration'),
        )

    async def _strategy_og(self, url: str) -> Optional[ExtractionResult]:
        """Read OpenGraph video tags the way link-preview crawlers see them."""
        async with fetch.client() as http:
            resp = await http.get(url, headers={'User-Agent': 'facebookexternalhit/1.1'})
        if resp.status_code != 200:
            return None

        html = resp.text
        video = meta_content(html, 'og:video:secure_url') or meta_content(html, 'og:video')
        if not video:
            return None
        formats = [as_format(video, 0, 'HD')]
        return self.build_result(
            formats,
            title=meta_content(html, 'og:title') or page_title(html, default=self.default_title),
            thumbnail=meta_content(html, 'og:image'),
        )
