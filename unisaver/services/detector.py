"""
Platform detection for incoming page URLs.

Detection is plain substring matching on the lower-cased URL; nothing is
validated beyond that.
"""

import re
from typing import Optional
from urllib.parse import unquote

PLATFORM_HOSTS = (
    ("youtube", ("youtube.com", "youtu.be")),
    ("facebook", ("facebook.com", "fb.watch", "fb.com")),
    ("instagram", ("instagram.com",)),
    ("tiktok", ("tiktok.com",)),
    # bare "x.com" would also match hosts like netflix.com
    ("twitter", ("twitter.com", "://x.com", ".x.com")),
    ("threads", ("threads.net", "threads.com")),
    ("pinterest", ("pinterest.", "pin.it")),
    ("vimeo", ("vimeo.com",)),
    ("dailymotion", ("dailymotion.com", "dai.ly")),
    ("twitch", ("twitch.tv",)),
)

MUSIC_HOSTS = (
    ("spotify", "spotify.com"),
    ("soundcloud", "soundcloud.com"),
    ("bandcamp", "bandcamp.com"),
    ("deezer", "deezer.com"),
    ("apple_music", "music.apple.com"),
    ("amazon_music", "music.amazon."),
    ("mixcloud", "mixcloud.com"),
    ("audiomack", "audiomack.com"),
)

# Home pages used as Referer for page fetches, yt-dlp and the proxy
PLATFORM_REFERERS = {
    "youtube": "https://www.youtube.com/",
    "facebook": "https://www.facebook.com/",
    "instagram": "https://www.instagram.com/",
    "tiktok": "https://www.tiktok.com/",
    "twitter": "https://x.com/",
    "threads": "https://www.threads.net/",
    "pinterest": "https://www.pinterest.com/",
    "vimeo": "https://vimeo.com/",
    "dailymotion": "https://www.dailymotion.com/",
    "twitch": "https://www.twitch.tv/",
    "spotify": "https://open.spotify.com/",
    "soundcloud": "https://soundcloud.com/",
    "bandcamp": "https://bandcamp.com/",
    "deezer": "https://www.deezer.com/",
    "apple_music": "https://music.apple.com/",
    "amazon_music": "https://music.amazon.com/",
    "mixcloud": "https://www.mixcloud.com/",
    "audiomack": "https://audiomack.com/",
}

_HTTP_RE = re.compile(r'^https?://', re.IGNORECASE)
_INSTAGRAM_RE = re.compile(r'instagram\.com/(?:stories/[^/]+/|(p|reels?|tv)/)([A-Za-z0-9_-]+)')


def music_platform_of(url: str) -> str:
    u = (url or "").lower()
    for platform, host in MUSIC_HOSTS:
        if host in u:
            return platform
    return "unknown"


def detect_platform(url: str) -> str:
    u = (url or "").lower()
    if "://" not in u:
        # schemeless input still needs to hit the "://x.com" entry
        u = "://" + u
    for platform, hosts in PLATFORM_HOSTS:
        if any(host in u for host in hosts):
            return platform
    if music_platform_of(u) != "unknown":
        return "music"
    return "generic"


def referer_for(platform: Optional[str], url: str = "") -> Optional[str]:
    if platform == "music":
        platform = music_platform_of(url)
    return PLATFORM_REFERERS.get(platform or "")


def is_http_url(url: Optional[str]) -> bool:
    return bool(url) and bool(_HTTP_RE.match(url))


def instagram_shortcode(url: str) -> Optional[str]:
    match = _INSTAGRAM_RE.search(url)
    return match.group(2) if match else None


def clean_url(url: str) -> str:
    url = url.strip()

    # Google search result redirects
    if 'google.' in url and '/url?' in url:
        match = re.search(r'[?&](?:url|q)=([^&]+)', url)
        if match:
            return unquote(match.group(1))

    if 'instagram.com' in url:
        match = _INSTAGRAM_RE.search(url)
        if match:
            kind = match.group(1) or "stories"
            if kind == "stories":
                return url.split('?')[0]
            kind = "reel" if kind.startswith("reel") else kind
            return f"https://www.instagram.com/{kind}/{match.group(2)}/"

    return url
