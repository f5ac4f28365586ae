import logging
from typing import Optional

from fastapi import APIRouter, Header, Query
from fastapi.responses import JSONResponse, RedirectResponse

from unisaver.core.errors import UpstreamError
from unisaver.models.schemas import ErrorResponse, MediaInfo
from unisaver.services.detector import clean_url, detect_platform, is_http_url, music_platform_of
from unisaver.services.extractor import extractor
from unisaver.services.formats import ext_from
from unisaver.services.streamer import stream_proxy

logger = logging.getLogger(__name__)

router = APIRouter()

PLATFORM_ROUTES = (
    "youtube", "facebook", "instagram", "tiktok", "twitter", "threads",
    "pinterest", "vimeo", "dailymotion", "twitch", "music",
)


def error_response(status_code: int, error: str, detail: Optional[str] = None,
                   platform: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, error_detail=detail, platform=platform)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, exclude_none=True))


def media_response(info: MediaInfo) -> JSONResponse:
    return JSONResponse(content=info.model_dump(by_alias=True, mode="json"))


def has_playable(info: MediaInfo) -> bool:
    return bool(info.formats or info.direct_url or info.embed_url)


@router.get("/info")
async def media_info(url: Optional[str] = Query(None)):
    """Detect the platform, run its extractor chain and return playable formats."""
    if not url:
        return error_response(400, "Missing url")

    platform = detect_platform(clean_url(url))
    try:
        info = await extractor.extract_info(url, platform)
    except Exception as e:
        logger.exception("[!] Extraction failed for %s", url)
        return error_response(500, "Failed to process media", str(e), platform)

    if not has_playable(info):
        return error_response(
            422, "No playable media found",
            "The URL was parsed but produced no direct playable streams (MP4/HLS/DASH).",
            platform,
        )
    return media_response(info)


@router.get("/special-media")
async def special_media(url: Optional[str] = Query(None)):
    if not url:
        return error_response(400, "Missing url")
    try:
        info = await extractor.extract_special(url)
    except Exception as e:
        logger.exception("[!] Special media extraction failed for %s", url)
        return error_response(500, "Failed to process special media", str(e))
    return media_response(info)


def _platform_route(platform: str):
    label = extractor.label_of(platform)

    async def handler(url: Optional[str] = Query(None)):
        if not url:
            return error_response(400, "Missing url")
        try:
            info = await extractor.extract_platform(platform, url)
            if not has_playable(info):
                return error_response(500, f"{label} processing failed", f"No playable {label} formats", platform)
        except Exception as e:
            logger.warning("[!] %s extraction failed for %s: %s", label, url, e)
            return error_response(500, f"{label} processing failed", str(e), platform)
        return media_response(info)

    handler.__name__ = f"{platform}_info"
    return handler


for _platform in PLATFORM_ROUTES:
    router.add_api_route(f"/{_platform}", _platform_route(_platform), methods=["GET"])


def default_filename(url: str, platform: Optional[str], ext: str) -> str:
    name = platform or detect_platform(url)
    if name == "music":
        name = music_platform_of(url)
    if name in ("generic", "unknown"):
        name = "media"
    return f"{name}.{ext_from(url, ext)}"


async def _proxy(url: Optional[str], range_header: Optional[str], **kwargs):
    if not url:
        return error_response(400, "Missing url")
    if not is_http_url(url):
        return error_response(400, "Invalid url")
    try:
        return await stream_proxy.proxy_stream(url, range_header, **kwargs)
    except UpstreamError as e:
        logger.warning("[!] Proxy failed for %s: %s", url[:80], e)
        return error_response(502, "Failed to fetch media", str(e))


@router.get("/direct")
async def direct(
    url: Optional[str] = Query(None),
    filename: Optional[str] = Query(None),
    referer: Optional[str] = Query(None),
    platform: Optional[str] = Query(None),
    range: Optional[str] = Header(None),
):
    """Stream a resolved media URL through the server, honoring Range for seeking."""
    return await _proxy(url, range, filename=filename, referer=referer, platform=platform,
                        disposition="attachment" if filename else "inline")


@router.get("/download")
async def download(
    url: Optional[str] = Query(None),
    filename: Optional[str] = Query(None),
    referer: Optional[str] = Query(None),
    platform: Optional[str] = Query(None),
    range: Optional[str] = Header(None),
):
    return await _proxy(url, range, referer=referer, platform=platform,
                        filename=filename or (default_filename(url, platform, "mp4") if url else None))


@router.get("/audio")
async def audio(
    url: Optional[str] = Query(None),
    filename: Optional[str] = Query(None),
    referer: Optional[str] = Query(None),
    platform: Optional[str] = Query(None),
    range: Optional[str] = Header(None),
):
    return await _proxy(url, range, referer=referer, platform=platform, default_type="audio/mpeg",
                        filename=filename or (default_filename(url, platform, "mp3") if url else None))


def redirect_to(url: Optional[str]):
    if not url:
        return error_response(400, "Missing url")
    # never redirect to non-http(s)
    if not is_http_url(url):
        return error_response(400, "Invalid url")
    return RedirectResponse(url, status_code=302, headers={
        "Cache-Control": "no-store",
        "Access-Control-Expose-Headers": "Content-Disposition",
    })


@router.get("/facebook-download")
async def facebook_download(url: Optional[str] = Query(None), originalUrl: Optional[str] = Query(None)):
    return redirect_to(url or originalUrl)


@router.get("/threads-download")
async def threads_download(url: Optional[str] = Query(None), originalUrl: Optional[str] = Query(None)):
    return redirect_to(url or originalUrl)
