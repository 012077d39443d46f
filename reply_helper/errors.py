class ReplyHelperError(Exception):
    """Base class for errors raised while producing a suggestion."""


class ConfigurationError(ReplyHelperError):
    """Required connection secrets are missing."""


class SuggestionTimeoutError(ReplyHelperError, TimeoutError):
    """The vector-search call did not complete before the deadline."""


class NetworkError(ReplyHelperError):
    """The vector-search service could not be reached."""


class UpstreamStatusError(ReplyHelperError):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class ParseError(ReplyHelperError):
    """The generated text was not recoverable JSON."""
