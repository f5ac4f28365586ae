from unisaver.core.errors import ExtractionError
from unisaver.models.schemas import ExtractionResult
from unisaver.services import fetch
from unisaver.services.extractors.base import PlatformExtractor
from unisaver.services.formats import as_format
from unisaver.services.scrape import all_matches, meta_content, page_title

CLIP_PATTERNS = (
    r'https://clips-media-assets\d*\.twitch\.tv/[^"\'\s]+\.mp4',
    r'https://production-assets\.clips\.twitchcdn\.net/[^"\'\s]+\.mp4',
)


class TwitchExtractor(PlatformExtractor):
    name = "twitch"
    label = "Twitch"
    default_title = "Twitch Media"
    strategies = ("html", "ydl")
    ydl_prefer = "any"

    def parse_page(self, html: str) -> ExtractionResult:
        clips = all_matches(html, CLIP_PATTERNS)
        if not clips:
            raise ExtractionError("no clip media found")
        formats = [as_format(u, i, 'Best' if i == 0 else 'Alt') for i, u in enumerate(clips)]
        return self.build_result(
            formats,
            title=page_title(html, default=self.default_title),
            thumbnail=meta_content(html, 'og:image'),
        )

    async def _strategy_html(self, url: str) -> ExtractionResult:
        return self.parse_page(await fetch.fetch_page(url, referer=self.referer))


extractor = TwitchExtractor()
