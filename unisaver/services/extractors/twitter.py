from unisaver.services.extractors.base import PlatformExtractor


class TwitterExtractor(PlatformExtractor):
    name = "twitter"
    label = "Twitter"
    default_title = "Twitter Video"
    strategies = ("ydl", "og")


extractor = TwitterExtractor()
