from typing import Iterable


class BlogWizardError(Exception):
    """Base class for every error raised by this package."""


# ---------------------------------------------------------------------------
# Model gateway
# ---------------------------------------------------------------------------

class GatewayError(BlogWizardError):
    """A call to the generative service produced an unusable result."""


class EmptyResponseError(GatewayError):
    """The service returned no text, image or audio payload."""


class MalformedResponseError(GatewayError):
    """The text payload is present but is not a JSON object."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class IncompleteArticleError(GatewayError):
    """The JSON document parsed but required article fields are absent or mistyped."""

    def __init__(self, fields: Iterable[str]):
        self.fields = sorted(set(fields))
        super().__init__(f"Article response is missing or has invalid fields: {', '.join(self.fields)}")


class MissingResultError(GatewayError):
    """A finished video job has no retrievable result URI."""


class VideoGenerationError(GatewayError):
    """The video job finished with an error reported by the service."""


class VideoTimeoutError(GatewayError):
    """The video job did not finish within the configured timeout."""


class VideoKeyRequiredError(GatewayError):
    """Video generation needs a dedicated API key that is not configured."""


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

class SessionNotFoundError(BlogWizardError):
    pass


class SessionBusyError(BlogWizardError):
    """Another operation is in flight for the session."""


class MissingArtifactError(BlogWizardError):
    """The action needs an article or image that the session does not hold."""


class InvalidSubmissionError(BlogWizardError, ValueError):
    """Neither a topic nor a reference URL was provided."""


class StaleResultError(BlogWizardError):
    """A result arrived after the session was discarded or restarted."""
