import asyncio

import httpx

from unisaver.models.schemas import MediaFormat, MediaType
from unisaver.services.formats import (as_format, ext_from, filter_playable, formats_from_ytdl, media_type_of,
                                       pick_best, quality_to_number)

YTDL_INFO = {
    'title': 'Never Gonna Give You Up',
    'formats': [
        {'format_id': '140', 'ext': 'm4a', 'vcodec': 'none', 'acodec': 'mp4a.40.2', 'abr': 129.5,
         'url': 'https://rr1.googlevideo.com/videoplayback?itag=140'},
        {'format_id': '18', 'ext': 'mp4', 'vcodec': 'avc1.42001E', 'acodec': 'mp4a.40.2', 'height': 360,
         'url': 'https://rr1.googlevideo.com/videoplayback?itag=18', 'filesize': 1000},
        {'format_id': '137', 'ext': 'mp4', 'vcodec': 'avc1.640028', 'acodec': 'none', 'height': 1080,
         'url': 'https://rr1.googlevideo.com/videoplayback?itag=137'},
        {'format_id': '251', 'ext': 'webm', 'vcodec': 'none', 'acodec': 'opus', 'abr': 160,
         'url': 'https://rr1.googlevideo.com/videoplayback?itag=251'},
        {'format_id': 'sb0', 'ext': 'mhtml', 'vcodec': 'none', 'acodec': 'none'},
    ],
}


def test_ext_from():
    assert ext_from("https://cdn.example.com/a/b.MP4?x=1") == "mp4"
    assert ext_from("https://cdn.example.com/pic.jpeg") == "jpg"
    assert ext_from("https://cdn.example.com/master.m3u8#t=1") == "m3u8"
    assert ext_from("https://cdn.example.com/stream", "mp3") == "mp3"


def test_quality_to_number():
    assert quality_to_number("1080p") == 1080
    assert quality_to_number("HD") == 0
    assert quality_to_number(None) == 0


def test_as_format_classifies_by_extension():
    video = as_format("https://cdn.example.com/v.mp4", 0)
    assert (video.mime_type, video.has_video, video.has_audio, video.container) == ("video/mp4", True, True, "mp4")

    image = as_format("https://cdn.example.com/p.jpg?w=1", 1, "Image")
    assert image.mime_type == "image/jpeg"
    assert not image.has_video and not image.has_audio
    assert image.is_image

    audio = as_format("https://cdn.example.com/a.mp3", 2)
    assert audio.mime_type == "audio/mpeg"
    assert audio.has_audio and not audio.has_video

    hls = as_format("https://cdn.example.com/master.m3u8", 3)
    assert hls.mime_type == "application/x-mpegURL"
    assert hls.container == "hls"


def test_formats_from_ytdl_prefers_progressive_mp4():
    formats = formats_from_ytdl(YTDL_INFO)
    assert [f.itag for f in formats] == ['18']
    assert formats[0].quality == '360p'
    assert formats[0].content_length == 1000
    assert formats[0].has_audio and formats[0].has_video


def test_formats_from_ytdl_falls_back_to_video_only_mp4():
    info = {'formats': [f for f in YTDL_INFO['formats'] if f['format_id'] != '18']}
    formats = formats_from_ytdl(info)
    assert [f.itag for f in formats] == ['137']
    assert not formats[0].has_audio


def test_formats_from_ytdl_audio_sorted_by_bitrate():
    formats = formats_from_ytdl(YTDL_INFO, prefer='audio')
    assert [f.itag for f in formats] == ['251', '140', '18']
    assert formats[0].quality == '160kbps'
    assert formats[0].mime_type == 'audio/webm'


def test_formats_from_ytdl_any_skips_entries_without_url():
    formats = formats_from_ytdl(YTDL_INFO, prefer='any')
    assert len(formats) == 4


def test_formats_from_ytdl_uses_root_url():
    info = {'url': 'https://cdn.example.com/clip.mp4', 'ext': 'mp4'}
    formats = formats_from_ytdl(info, prefer='any')
    assert len(formats) == 1
    assert formats[0].url == info['url']
    assert formats[0].has_video


def test_formats_from_ytdl_marks_hls():
    info = {'formats': [{'format_id': 'hls-720', 'ext': 'mp4', 'protocol': 'm3u8_native', 'vcodec': 'avc1',
                         'acodec': 'mp4a', 'height': 720, 'url': 'https://cdn.example.com/720.m3u8'}]}
    fmt = formats_from_ytdl(info, prefer='any')[0]
    assert fmt.container == 'hls'
    assert fmt.mime_type == 'application/x-mpegURL'


def test_pick_best_prefers_formats_with_sound_then_height():
    formats = formats_from_ytdl(YTDL_INFO, prefer='any')
    assert pick_best(formats).itag == '18'
    assert pick_best([]) is None


def test_pick_best_by_height_among_equals():
    low = as_format("https://cdn.example.com/low.mp4", 0)
    low.height = 360
    high = as_format("https://cdn.example.com/high.mp4", 1)
    high.height = 720
    assert pick_best([low, high]) is high


def test_media_type_of():
    video = as_format("https://cdn.example.com/v.mp4", 0)
    image = as_format("https://cdn.example.com/p.png", 1)
    audio = as_format("https://cdn.example.com/a.m4a", 2)
    assert media_type_of([video, image]) == MediaType.MIXED
    assert media_type_of([video]) == MediaType.VIDEO
    assert media_type_of([image]) == MediaType.IMAGE
    assert media_type_of([audio]) == MediaType.AUDIO
    assert media_type_of([]) == MediaType.UNKNOWN


def test_filter_playable_keeps_declared_media_types():
    formats = [
        as_format("https://cdn.example.com/v.mp4", 0),
        MediaFormat(itag='1', url='https://rr1.googlevideo.com/videoplayback?itag=18', mime_type='video/mp4'),
        MediaFormat(itag='2', url='https://cdn.example.com/blob', mime_type='application/octet-stream'),
        as_format("https://cdn.example.com/p.jpg", 3),
    ]
    kept = asyncio.run(filter_playable(formats))
    assert [f.itag for f in kept] == ['0', '1', '3']


def test_filter_playable_strict_verifies_with_head(web, strict):
    web.add("https://cdn.example.com/good", method="HEAD", headers={"Content-Type": "video/mp4"})
    web.add("https://cdn.example.com/page", method="HEAD", headers={"Content-Type": "text/html"})
    formats = [
        MediaFormat(itag='0', url='https://cdn.example.com/good', mime_type='application/octet-stream'),
        MediaFormat(itag='1', url='https://cdn.example.com/page', mime_type='video/mp4'),
        MediaFormat(itag='2', url='https://cdn.example.com/missing', mime_type='video/mp4'),
        as_format("https://cdn.example.com/v.mp4", 3),
    ]
    kept = asyncio.run(filter_playable(formats))
    assert [f.itag for f in kept] == ['0', '3']
    assert all(r.method == "HEAD" for r in web.requests)
    assert len(web.requests) == 3


def test_head_errors_count_as_unplayable(web, strict):
    def boom(request):
        raise httpx.ConnectError("refused", request=request)

    web.add("https://cdn.example.com/", respond=boom)
    formats = [MediaFormat(itag='0', url='https://cdn.example.com/x', mime_type='video/mp4')]
    assert asyncio.run(filter_playable(formats)) == []
