class HapIntelError(Exception):
    """Base error; str(error) is the message shown to the operator."""


class ConfigurationError(HapIntelError):
    """A credential or setting is missing. Raised before any request is sent."""


class ProfileFetchError(HapIntelError):
    """Base for failures while fetching a single profile."""


class UpstreamError(ProfileFetchError):
    def __init__(self, status: int | None, body: str, message: str | None = None):
        self.status = status
        self.body = body
        if message is None:
            if status is None:
                message = f"Search backend unreachable: {body}"
            else:
                message = f"Search backend returned HTTP {status}"
        super().__init__(message)


class EmptyResponse(ProfileFetchError):
    def __init__(self, message: str = "Search backend returned no text"):
        super().__init__(message)


class MalformedResponse(ProfileFetchError):
    def __init__(self, message: str = "Search backend response did not contain a valid JSON profile", raw: str = ""):
        self.raw = raw
        super().__init__(message)


class BatchAbortedError(HapIntelError):
    """One batch entry failed; entries completed before it stay in history."""

    def __init__(self, index: int, name: str, completed: int, total: int, cause: Exception):
        self.index = index
        self.name = name
        self.completed = completed
        self.total = total
        self.cause = cause
        detail = str(cause) or "Batch processing failed"
        super().__init__(f"Entry {index}/{total} ({name}) failed: {detail}")
