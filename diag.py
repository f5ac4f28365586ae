import asyncio
import shutil
import sys

from yt_dlp.version import __version__ as ytdlp_version

from unisaver.core.logging import setup_logging
from unisaver.services.extractor import extractor


def check_tools():
    print("Checking optional tools:")
    print(f"  {'ok' if shutil.which('ffmpeg') else 'MISSING'}: ffmpeg")
    print(f"  ok: yt-dlp {ytdlp_version}")


async def test(urls):
    for url in urls:
        print(f"\n--- Testing: {url} ---")
        try:
            res = await extractor.extract_info(url)
        except Exception as e:
            print(f"FAILED: {e}")
            continue
        print(f"SUCCESS: {res.title} ({res.platform}, {res.media_type}, {len(res.formats)} formats)")


if __name__ == "__main__":
    setup_logging()
    check_tools()
    asyncio.run(test(sys.argv[1:] or ["https://www.youtube.com/watch?v=dQw4w9WgXcQ"]))
