from typing import Optional


class ExtractionError(Exception):
    """Every strategy of a platform's chain failed or returned nothing."""


class AuthRequiredError(ExtractionError):
    """The content needs a logged-in session; no other strategy will help."""


class UpstreamError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
