from enum import Enum
from typing import List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class MediaType(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"
    IMAGE = "image"
    MIXED = "mixed"
    UNKNOWN = "unknown"


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        use_enum_values = True


class MediaFormat(CamelModel):
    itag: str
    quality: str = "Original Quality"
    url: str
    mime_type: str = "video/mp4"
    has_audio: bool = True
    has_video: bool = True
    container: str = "mp4"
    content_length: int = 0
    height: Optional[int] = None
    audio_bitrate: Optional[float] = None
    video_codec: Optional[str] = None
    audio_codec: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


class ExtractionResult(CamelModel):
    title: Optional[str] = None
    thumbnail: Optional[str] = None
    duration: Optional[float] = None
    media_type: Optional[MediaType] = None
    formats: List[MediaFormat] = []
    direct_url: Optional[str] = None
    embed_url: Optional[str] = None
    quality: Optional[str] = None
    source: Optional[str] = None
    note: Optional[str] = None
    extracted_by: Optional[str] = None

    @property
    def has_media(self) -> bool:
        return bool(self.formats or self.direct_url or self.embed_url)


class Thumbnail(CamelModel):
    url: str


class MediaInfo(CamelModel):
    success: bool = True
    platform: str
    media_type: MediaType = MediaType.VIDEO
    title: str
    duration: Optional[float] = None
    thumbnail: str = ""
    thumbnails: List[Thumbnail] = []
    formats: List[MediaFormat] = []
    direct_url: Optional[str] = None
    embed_url: Optional[str] = None
    extracted_by: Optional[str] = None
    note: Optional[str] = None


class ErrorResponse(CamelModel):
    error: str
    error_detail: Optional[str] = None
    platform: Optional[str] = None


class HealthResponse(BaseModel):
    ok: bool = True
    name: str
    version: str
