from unisaver.services.extractors.base import PlatformExtractor


class DailymotionExtractor(PlatformExtractor):
    name = "dailymotion"
    label = "Dailymotion"
    default_title = "Dailymotion Video"
    strategies = ("ydl",)
    ydl_prefer = "any"


extractor = DailymotionExtractor()
