import logging
import re
from typing import Optional
from urllib.parse import quote

import httpx
from fastapi.responses import StreamingResponse

from unisaver.core.config import settings
from unisaver.core.errors import UpstreamError
from unisaver.services import fetch
from unisaver.services.detector import referer_for

logger = logging.getLogger(__name__)

PASSTHROUGH_HEADERS = ("Content-Length", "Content-Range", "Content-Encoding", "Last-Modified", "ETag")


def content_disposition(filename: str, disposition: str = "attachment") -> str:
    """Header value with an ASCII fallback name plus the RFC 5987 UTF-8 form."""
    safe = re.sub(r'[\r\n"\\/]+', '_', filename).strip() or "download"
    ascii_name = safe.encode("ascii", "ignore").decode() or "download"
    return f"{disposition}; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(safe)}"


class StreamProxy:
    async def proxy_stream(
        self,
        url: str,
        range_header: Optional[str] = None,
        filename: Optional[str] = None,
        referer: Optional[str] = None,
        platform: Optional[str] = None,
        disposition: str = "attachment",
        default_type: str = "video/mp4",
    ) -> StreamingResponse:
        headers = {'User-Agent': settings.USER_AGENT, 'Accept': '*/*'}
        referer = referer or referer_for(platform, url)
        if referer:
            headers['Referer'] = referer
        if range_header:
            headers['Range'] = range_header

        client = fetch.client(timeout=settings.STREAM_TIMEOUT)
        try:
            upstream = await client.send(client.build_request("GET", url, headers=headers), stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            await client.aclose()
            raise UpstreamError(f"Upstream request failed: {e}") from e

        if upstream.status_code >= 400:
            await upstream.aclose()
            await client.aclose()
            raise UpstreamError(f"Upstream responded with {upstream.status_code}", upstream.status_code)

        res_headers = {
            "Content-Type": upstream.headers.get("Content-Type", default_type),
            "Accept-Ranges": upstream.headers.get("Accept-Ranges", "bytes"),
            "Cache-Control": "no-store",
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Expose-Headers": "Content-Disposition, Content-Length, Content-Range",
        }
        for name in PASSTHROUGH_HEADERS:
            if upstream.headers.get(name):
                res_headers[name] = upstream.headers[name]
        if filename:
            res_headers["Content-Disposition"] = content_disposition(filename, disposition)

        async def body():
            try:
                async for chunk in upstream.aiter_raw(chunk_size=settings.STREAM_CHUNK_SIZE):
                    yield chunk
            finally:
                await upstream.aclose()
                await client.aclose()

        logger.info("[*] Proxying %s (%s)", url[:80], upstream.status_code)
        return StreamingResponse(
            body(),
            status_code=upstream.status_code,
            headers=res_headers,
        )


stream_proxy = StreamProxy()
