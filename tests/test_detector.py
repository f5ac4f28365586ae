import pytest

from unisaver.services.detector import (clean_url, detect_platform, instagram_shortcode, is_http_url,
                                        music_platform_of, referer_for)


@pytest.mark.parametrize("url,platform", [
    ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "youtube"),
    ("https://youtu.be/dQw4w9WgXcQ", "youtube"),
    ("https://fb.watch/abc123/", "facebook"),
    ("https://www.facebook.com/watch/?v=1", "facebook"),
    ("https://www.instagram.com/reel/Cabc123/", "instagram"),
    ("https://www.tiktok.com/@user/video/7234", "tiktok"),
    ("https://twitter.com/user/status/1", "twitter"),
    ("https://x.com/user/status/1", "twitter"),
    ("https://www.threads.net/@user/post/abc", "threads"),
    ("https://www.pinterest.com/pin/123/", "pinterest"),
    ("https://pin.it/abc", "pinterest"),
    ("https://vimeo.com/76979871", "vimeo"),
    ("https://www.dailymotion.com/video/x8abc", "dailymotion"),
    ("https://clips.twitch.tv/SomeClip", "twitch"),
    ("https://soundcloud.com/artist/track", "music"),
    ("https://open.spotify.com/track/abc", "music"),
    ("https://example.com/video.mp4", "generic"),
])
def test_detect_platform(url, platform):
    assert detect_platform(url) == platform


def test_detect_platform_is_case_insensitive():
    assert detect_platform("HTTPS://WWW.YOUTUBE.COM/watch?v=x") == "youtube"


def test_hosts_ending_in_x_com_are_not_twitter():
    assert detect_platform("https://www.netflix.com/title/1") == "generic"
    assert detect_platform("netflix.com/title/1") == "generic"


def test_schemeless_x_com_is_twitter():
    assert detect_platform("x.com/u/status/1") == "twitter"
    assert detect_platform("www.x.com/u/status/1") == "twitter"


@pytest.mark.parametrize("url,platform", [
    ("https://music.apple.com/us/album/x", "apple_music"),
    ("https://music.amazon.co.uk/albums/x", "amazon_music"),
    ("https://artist.bandcamp.com/track/x", "bandcamp"),
    ("https://www.mixcloud.com/show/x/", "mixcloud"),
    ("https://example.com/song.mp3", "unknown"),
])
def test_music_platform_of(url, platform):
    assert music_platform_of(url) == platform


def test_is_http_url():
    assert is_http_url("https://cdn.example.com/a.mp4")
    assert is_http_url("HTTP://cdn.example.com/a.mp4")
    assert not is_http_url("ftp://cdn.example.com/a.mp4")
    assert not is_http_url("javascript:alert(1)")
    assert not is_http_url("")
    assert not is_http_url(None)


def test_clean_url_unwraps_google_redirect():
    url = "https://www.google.com/url?sa=t&url=https%3A%2F%2Fvimeo.com%2F123&usg=x"
    assert clean_url(url) == "https://vimeo.com/123"


def test_clean_url_canonicalizes_instagram():
    assert clean_url("https://www.instagram.com/reels/Cabc_12-/?igsh=xyz") == "https://www.instagram.com/reel/Cabc_12-/"
    assert clean_url("https://instagram.com/p/XYZ/?utm_source=ig") == "https://www.instagram.com/p/XYZ/"


def test_clean_url_leaves_other_urls_alone():
    assert clean_url("  https://vimeo.com/123 ") == "https://vimeo.com/123"


def test_instagram_shortcode():
    assert instagram_shortcode("https://www.instagram.com/tv/B1x2y3/") == "B1x2y3"
    assert instagram_shortcode("https://www.instagram.com/stories/someone/3141/") == "3141"
    assert instagram_shortcode("https://www.instagram.com/someone/") is None


def test_referer_for_music_uses_the_music_host():
    assert referer_for("music", "https://soundcloud.com/a/b") == "https://soundcloud.com/"
    assert referer_for("tiktok") == "https://www.tiktok.com/"
    assert referer_for(None) is None
