import re
from typing import List

from unisaver.core.errors import ExtractionError
from unisaver.models.schemas import ExtractionResult
from unisaver.services import fetch, ytdl
from unisaver.services.extractors.base import PlatformExtractor
from unisaver.services.formats import as_format, formats_from_ytdl
from unisaver.services.scrape import (all_matches, clean_media_url, meta_content, page_title,
                                      script_json_blocks, walk_strings)

VIDEO_PATTERNS = (
    r'"video_url":"([^"]+)"',
    r'"contentUrl":\s*"(https://v\.pinimg\.com[^"]+)"',
    r'"contentUrl":\s*"([^"]+\.mp4[^"]*)"',
    r'<meta\s+property="og:video"\s+content="([^"]+)"',
    r'<meta\s+property="og:video:url"\s+content="([^"]+)"',
    r'"v_hd":\s*\{[^}]*"url":\s*"([^"]+)"',
    r'"v_sd":\s*\{[^}]*"url":\s*"([^"]+)"',
    r'https://v\.pinimg\.com/videos/[^\s"\']+\.mp4',
)

IMAGE_PATTERNS = (
    r'https://i\.pinimg\.com/originals/[a-z0-9/._-]+\.(?:jpg|jpeg|png|gif|webp)',
    r'https://i\.pinimg\.com/\d+x/[a-z0-9/._-]+\.(?:jpg|jpeg|png|gif|webp)',
)

_IMAGE_EXT_RE = re.compile(r'\.(jpg|jpeg|png|gif|webp)(?:$|\?)', re.IGNORECASE)
_SIZE_RE = re.compile(r'/(\d+)x/')


def extract_video_urls(html: str) -> List[str]:
    videos = all_matches(html, VIDEO_PATTERNS)
    for block in script_json_blocks(html, "application/ld+json"):
        for item in block if isinstance(block, list) else [block]:
            content_url = item.get('contentUrl') if isinstance(item, dict) else None
            if content_url and ('v.pinimg.com' in content_url or '.mp4' in content_url):
                content_url = clean_media_url(content_url)
                if content_url not in videos:
                    videos.append(content_url)
    return videos


def _image_rank(url: str):
    size = _SIZE_RE.search(url)
    return ('/originals/' not in url, -int(size.group(1)) if size else 0, -len(url))


def extract_image_urls(html: str) -> List[str]:
    images = all_matches(html, IMAGE_PATTERNS)
    for block in script_json_blocks(html, "application/json"):
        images.extend(s for s in walk_strings(block) if s.startswith('http') and 'i.pinimg.com' in s)
    og_image = meta_content(html, 'og:image')
    if og_image:
        images.append(og_image)

    unique = []
    for url in map(clean_media_url, images):
        if url not in unique and _IMAGE_EXT_RE.search(url):
            unique.append(url)
    # originals first, then largest size hint
    return sorted(unique, key=_image_rank)


def image_label(url: str) -> str:
    if '/originals/' in url:
        return 'Original'
    size = _SIZE_RE.search(url)
    return f"{size.group(1)}px" if size else 'Image'


class PinterestExtractor(PlatformExtractor):
    name = "pinterest"
    label = "Pinterest"
    default_title = "Pinterest Media"
    strategies = ("html", "ydl")
    ydl_prefer = "any"

    def parse_page(self, html: str) -> ExtractionResult:
        title = page_title(html, suffix=' | Pinterest', default=self.default_title)
        thumbnail = meta_content(html, 'og:image')

        videos = extract_video_urls(html)
        if videos:
            formats = [as_format(u, i, 'Original Quality' if i == 0 else 'Alt') for i, u in enumerate(videos)]
            return self.build_result(formats, title=title, thumbnail=thumbnail)

        images = extract_image_urls(html)
        if images:
            formats = [as_format(u, i, image_label(u), default_ext='jpg') for i, u in enumerate(images)]
            return self.build_result(formats, title=title, thumbnail=images[0])

        raise ExtractionError("No media found in Pinterest page")

    async def _strategy_html(self, url: str) -> ExtractionResult:
        return self.parse_page(await fetch.fetch_page(url, referer=self.referer))

    async def _strategy_ydl(self, url: str) -> ExtractionResult:
        info = await ytdl.extract_info(url, **self.ydl_options(url))
        formats = formats_from_ytdl(info, prefer=self.ydl_prefer)
        if not formats:
            raise ExtractionError("yt-dlp returned no usable formats")
        # Pinterest serves bare mp4/jpg links; classify them by extension
        formats = [as_format(f.url, i, 'Image' if f.is_image else f.quality) for i, f in enumerate(formats)]
        return self.build_result(formats, title=info.get('title'), thumbnail=info.get('thumbnail'))


extractor = PinterestExtractor()
