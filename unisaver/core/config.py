from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "UniSaver"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"

    # HEAD-check formats whose URL does not look playable
    STRICT_VALIDATE: bool = False

    # Network settings
    HTTP_TIMEOUT: float = 20.0
    HEAD_TIMEOUT: float = 12.0
    STREAM_TIMEOUT: float = 30.0
    STREAM_CHUNK_SIZE: int = 1024 * 128
    YTDL_SOCKET_TIMEOUT: int = 30
    USER_AGENT: str = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
    MOBILE_USER_AGENT: str = 'Mozilla/5.0 (iPhone; CPU iPhone OS 15_6 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/15.0 Mobile/15E148 Safari/604.1'

    # Authenticated scraping
    IG_COOKIE_STRING: str = ""
    IG_COOKIES_FILE: str = ""
    FB_COOKIE_STRING: str = ""
    FB_COOKIES_FILE: str = ""

    # Third-party resolvers
    VIDFLY_API_URL: str = "https://api.vidfly.ai/api/media/youtube/download"
    TIKWM_API_URL: str = "https://www.tikwm.com/api/"
    COBALT_API_URL: str = ""

    class Config:
        case_sensitive = True
        env_file = ".env"
        extra = "ignore"

settings = Settings()
