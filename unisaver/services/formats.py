import logging
import re
from typing import Any, Dict, List, Optional

from unisaver.core.config import settings
from unisaver.models.schemas import MediaFormat, MediaType
from unisaver.services import fetch

logger = logging.getLogger(__name__)

VIDEO_EXTS = ('mp4', 'm4v', 'webm', 'mov')
AUDIO_EXTS = ('mp3', 'm4a', 'aac', 'ogg', 'wav', 'opus')
IMAGE_EXTS = ('jpg', 'png', 'gif', 'webp')

_EXT_RE = re.compile(r'\.(mp4|m4v|webm|mov|mp3|m4a|aac|ogg|wav|opus|jpg|jpeg|png|gif|webp|m3u8|mpd)(?:$|[?#])', re.IGNORECASE)
_PLAYABLE_RE = re.compile(r'\.(mp4|m4v|mov|webm|m3u8|mpd|mp3|m4a|aac|ogg|wav)(?:$|[?#])', re.IGNORECASE)
_ALLOWED_TYPES = (
    re.compile(r'^video/', re.IGNORECASE),
    re.compile(r'^audio/', re.IGNORECASE),
    re.compile(r'^image/', re.IGNORECASE),
    re.compile(r'^application/(dash\+xml|vnd\.apple\.mpegurl|x-mpegurl)', re.IGNORECASE),
)


def ext_from(url: str, default: str = 'mp4') -> str:
    match = _EXT_RE.search(str(url).lower())
    if not match:
        return default
    return 'jpg' if match.group(1) == 'jpeg' else match.group(1)


def quality_to_number(q: Any) -> int:
    digits = re.sub(r'[^\d]', '', str(q or ''))
    return int(digits) if digits else 0


def mime_for(ext: str) -> str:
    if ext == 'm3u8':
        return 'application/x-mpegURL'
    if ext == 'mpd':
        return 'application/dash+xml'
    if ext in AUDIO_EXTS:
        return 'audio/mpeg' if ext == 'mp3' else f'audio/{ext}'
    if ext in IMAGE_EXTS:
        return f'image/{"jpeg" if ext == "jpg" else ext}'
    return f'video/{ext}'


def as_format(url: str, index: int, label: str = 'Original Quality', default_ext: str = 'mp4') -> MediaFormat:
    """Build a format for a bare URL, classified by its extension."""
    ext = ext_from(url, default_ext)
    is_video = ext in VIDEO_EXTS or ext in ('m3u8', 'mpd')
    is_audio = ext in AUDIO_EXTS
    return MediaFormat(
        itag=str(index),
        quality=label,
        url=url,
        mime_type=mime_for(ext),
        has_audio=is_video or is_audio,
        has_video=is_video,
        container='hls' if ext == 'm3u8' else ('dash' if ext == 'mpd' else ext),
    )


def _codec_present(codec: Optional[str], fallback: bool) -> bool:
    # yt-dlp reports None when it doesn't know; 'none' means absent
    if codec is None:
        return fallback
    return codec != 'none'


def ytdl_format(f: Dict[str, Any], index: int, default_label: str = 'Original Quality') -> MediaFormat:
    ext = f.get('ext') or 'mp4'
    protocol = str(f.get('protocol') or '')
    has_video = _codec_present(f.get('vcodec'), ext in VIDEO_EXTS)
    has_audio = _codec_present(f.get('acodec'), ext in AUDIO_EXTS or has_video)

    if 'm3u8' in protocol:
        mime, container = 'application/x-mpegURL', 'hls'
    elif 'dash' in protocol:
        mime, container = 'application/dash+xml', 'dash'
    elif has_video:
        mime, container = f'video/{ext}', ext
    elif ext in IMAGE_EXTS or ext == 'jpeg':
        mime, container = mime_for('jpg' if ext == 'jpeg' else ext), ext
    else:
        mime, container = f'audio/{ext}', ext

    height = f.get('height')
    abr = f.get('abr')
    if abr and not has_video:
        label = f"{int(abr)}kbps"
    else:
        label = f.get('format_note') or (f"{height}p" if height else default_label)

    return MediaFormat(
        itag=str(f.get('format_id') or index),
        quality=label,
        url=f['url'],
        mime_type=f.get('mime_type') or mime,
        has_audio=has_audio,
        has_video=has_video,
        container=container,
        content_length=int(f.get('filesize') or f.get('filesize_approx') or 0),
        height=height,
        audio_bitrate=abr,
        video_codec=f.get('vcodec'),
        audio_codec=f.get('acodec'),
    )


def formats_from_ytdl(info: Dict[str, Any], prefer: str = 'progressive',
                      default_label: str = 'Original Quality') -> List[MediaFormat]:
    """
    Map a yt-dlp info dict onto formats.

    prefer:
        progressive - mp4 with audio and video, else mp4 with video, else anything with a URL
        audio       - entries carrying an audio codec, highest bitrate first
        any         - everything with a URL, in yt-dlp's order
    """
    raw = [f for f in (info.get('formats') or []) if f.get('url')]

    if prefer == 'progressive':
        mp4 = [f for f in raw if f.get('ext') in ('mp4', 'm4v') and f.get('vcodec') not in (None, 'none')]
        picked = [f for f in mp4 if f.get('acodec') not in (None, 'none')] or mp4 or raw
    elif prefer == 'audio':
        picked = [f for f in raw if f.get('acodec') not in (None, 'none')]
        picked.sort(key=lambda f: f.get('abr') or 0, reverse=True)
    else:
        picked = raw

    if not picked and info.get('url'):
        picked = [{
            'url': info['url'],
            'ext': info.get('ext') or ('mp3' if prefer == 'audio' else 'mp4'),
            'format_id': info.get('format_id'),
            'vcodec': info.get('vcodec'),
            'acodec': info.get('acodec'),
            'height': info.get('height'),
            'abr': info.get('abr'),
            'protocol': info.get('protocol'),
        }]

    return [ytdl_format(f, i, default_label) for i, f in enumerate(picked)]


def pick_best(formats: List[MediaFormat]) -> Optional[MediaFormat]:
    """Formats with sound first, then highest height, then highest audio bitrate."""
    candidates = [f for f in formats if f.url]
    if not candidates:
        return None
    # stable sort keeps extractor order among equals
    candidates.sort(key=lambda f: (f.has_audio, f.height or 0, f.audio_bitrate or 0), reverse=True)
    return candidates[0]


def media_type_of(formats: List[MediaFormat]) -> MediaType:
    has_video = any(f.has_video for f in formats)
    has_image = any(f.is_image for f in formats)
    if has_video and has_image:
        return MediaType.MIXED
    if has_video:
        return MediaType.VIDEO
    if has_image:
        return MediaType.IMAGE
    if any(f.has_audio for f in formats):
        return MediaType.AUDIO
    return MediaType.UNKNOWN


def looks_playable(url: str) -> bool:
    return bool(_PLAYABLE_RE.search(url or ''))


def allowed_content_type(content_type: str) -> bool:
    return any(rx.search(content_type or '') for rx in _ALLOWED_TYPES)


async def head_playable(url: str) -> bool:
    try:
        async with fetch.client(timeout=settings.HEAD_TIMEOUT) as http:
            resp = await http.head(url, headers={'User-Agent': settings.USER_AGENT})
    except Exception as e:
        logger.debug("[-] HEAD %s failed: %s", url[:80], e)
        return False
    if 200 <= resp.status_code < 400:
        return allowed_content_type(resp.headers.get('content-type', ''))
    return False


async def filter_playable(formats: List[MediaFormat]) -> List[MediaFormat]:
    out = []
    for f in formats:
        if not f.url:
            continue
        if looks_playable(f.url):
            ok = True
        elif settings.STRICT_VALIDATE:
            ok = await head_playable(f.url)
        else:
            ok = allowed_content_type(f.mime_type)
        if ok:
            out.append(f)
    return out
