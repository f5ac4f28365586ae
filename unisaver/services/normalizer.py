from typing import List

from unisaver.models.schemas import ExtractionResult, MediaFormat, MediaInfo, MediaType, Thumbnail
from unisaver.services.formats import ext_from, filter_playable, mime_for, pick_best


def _dedupe(formats: List[MediaFormat]) -> List[MediaFormat]:
    seen = set()
    unique = []
    for f in formats:
        if f.url and f.url not in seen:
            seen.add(f.url)
            unique.append(f)
    return unique


def normalize(platform: str, result: ExtractionResult) -> MediaInfo:
    """Reshape an extractor result into the response every route returns."""
    media_type = result.media_type or MediaType.VIDEO
    formats = _dedupe(result.formats)

    if not formats and result.direct_url:
        is_audio = media_type == MediaType.AUDIO
        ext = ext_from(result.direct_url, 'mp3' if is_audio else 'mp4')
        formats = [MediaFormat(
            itag='best',
            quality=result.quality or 'Original Quality',
            url=result.direct_url,
            mime_type='audio/mpeg' if is_audio and ext == 'mp4' else mime_for(ext),
            has_audio=True,
            has_video=not is_audio,
            container=ext,
        )]

    thumbnail = result.thumbnail or ''
    return MediaInfo(
        platform=platform or result.source or 'unknown',
        media_type=media_type,
        title=result.title or 'Media',
        duration=result.duration or None,
        thumbnail=thumbnail,
        thumbnails=[Thumbnail(url=thumbnail)] if thumbnail else [],
        formats=formats,
        direct_url=result.direct_url,
        embed_url=result.embed_url,
        extracted_by=result.extracted_by,
        note=result.note,
    )


async def finalize(info: MediaInfo) -> MediaInfo:
    """Drop unplayable formats and point directUrl at the best survivor."""
    info.formats = await filter_playable(info.formats)
    best = pick_best(info.formats)
    if best is not None:
        info.direct_url = best.url
    else:
        info.direct_url = None
    return info
