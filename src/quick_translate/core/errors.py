"""Error taxonomy for selection capture and resolution."""


class QuickTranslateError(Exception):
    """Base class for every failure surfaced by the resolution core."""


class ConfigurationMissing(QuickTranslateError):
    def __init__(self, what: str):
        super().__init__(f"missing config: {what}")
        self.what = what


class InvalidEndpoint(QuickTranslateError):
    def __init__(self, url: str):
        super().__init__(f"invalid url: {url}")
        self.url = url


class NetworkError(QuickTranslateError):
    """Transport level failure (connection refused, timeout, HTTP status)."""


class HttpError(NetworkError):
    def __init__(self, status: int, snippet: str):
        super().__init__(f"http {status}: {snippet}")
        self.status = status
        self.snippet = snippet


class InvalidResponse(QuickTranslateError):
    def __init__(self, reason: str):
        super().__init__(f"invalid response: {reason}")
        self.reason = reason


class DuplicateGenerated(InvalidResponse):
    def __init__(self):
        super().__init__("too many duplicates")


class CaptureUnavailable(QuickTranslateError):
    def __init__(self, selection_exists: bool = False):
        super().__init__("selection unavailable" if selection_exists else "no selection")
        self.selection_exists = selection_exists


class SelectionTooLong(QuickTranslateError):
    def __init__(self, length: int, limit: int):
        super().__init__(f"selection too long ({length} chars, limit {limit})")
        self.length = length
        self.limit = limit


class ResolutionCancelled(QuickTranslateError):
    """Raised inside background work once its trigger has been superseded."""
