import asyncio
import logging
import os
from typing import Any, Dict, Optional

import yt_dlp
from yt_dlp.utils import DownloadError

from unisaver.core.config import settings

logger = logging.getLogger(__name__)


def build_opts(referer: Optional[str] = None, user_agent: Optional[str] = None,
               cookiefile: Optional[str] = None, cookie: Optional[str] = None,
               **extra) -> Dict[str, Any]:
    opts = {
        'quiet': True, 'no_warnings': True, 'skip_download': True,
        'noplaylist': True, 'nocheckcertificate': True, 'no_color': True,
        'socket_timeout': settings.YTDL_SOCKET_TIMEOUT,
        'user_agent': user_agent or settings.USER_AGENT,
    }
    if referer:
        opts['referer'] = referer
    if cookiefile and os.path.exists(cookiefile):
        opts['cookiefile'] = cookiefile
    elif cookie:
        opts['http_headers'] = {'Cookie': cookie}
    opts.update(extra)
    return opts


def _extract_sync(url: str, opts: dict) -> Optional[Dict[str, Any]]:
    with yt_dlp.YoutubeDL(opts) as ydl:
        info = ydl.extract_info(url, download=False)
        return ydl.sanitize_info(info) if info else None


async def extract_info(url: str, **kwargs) -> Dict[str, Any]:
    """Run yt-dlp in the default executor and return the first entry's info dict."""
    opts = build_opts(**kwargs)
    logger.debug("[*] yt-dlp extracting %s", url)
    loop = asyncio.get_event_loop()
    info = await loop.run_in_executor(None, _extract_sync, url, opts)
    if info and info.get('entries'):
        entries = [e for e in info['entries'] if e]
        info = entries[0] if entries else None
    if not info:
        raise DownloadError(f"yt-dlp returned nothing for {url}")
    return info
