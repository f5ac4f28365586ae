import logging
from typing import Dict, Optional

from unisaver.models.schemas import MediaInfo
from unisaver.services.detector import clean_url, detect_platform
from unisaver.services.extractors import (dailymotion, facebook, generic, instagram, music, pinterest,
                                          threads, tiktok, twitch, twitter, vimeo, youtube)
from unisaver.services.extractors.base import PlatformExtractor
from unisaver.services.normalizer import finalize, normalize

logger = logging.getLogger(__name__)

SPECIAL_MEDIA = ("music", "vimeo", "dailymotion", "twitch")


class MediaExtractor:
    def __init__(self):
        self.registry: Dict[str, PlatformExtractor] = {
            "youtube": youtube.extractor,
            "facebook": facebook.extractor,
            "instagram": instagram.extractor,
            "tiktok": tiktok.extractor,
            "twitter": twitter.extractor,
            "threads": threads.extractor,
            "pinterest": pinterest.extractor,
            "vimeo": vimeo.extractor,
            "dailymotion": dailymotion.extractor,
            "twitch": twitch.extractor,
            "music": music.extractor,
            "generic": generic.extractor,
        }

    def label_of(self, platform: str) -> str:
        return self.registry.get(platform, generic.extractor).label

    async def extract_platform(self, platform: str, url: str, chain_name: Optional[str] = None) -> MediaInfo:
        """Run one platform's chain and return its normalized, playable-filtered result."""
        chain = self.registry.get(chain_name or platform) or self.registry["generic"]
        clean = clean_url(url)
        logger.info("[*] Analyzing %s as %s", clean, platform)
        result = await chain.extract(clean)
        return await finalize(normalize(platform, result))

    async def extract_info(self, url: str, platform: Optional[str] = None) -> MediaInfo:
        return await self.extract_platform(platform or detect_platform(clean_url(url)), url)

    async def extract_special(self, url: str) -> MediaInfo:
        platform = detect_platform(clean_url(url))
        chain_name = platform if platform in SPECIAL_MEDIA else "generic"
        return await self.extract_platform(platform, url, chain_name)


extractor = MediaExtractor()
