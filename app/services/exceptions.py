class LifecycleError(Exception):
    """Base class for crop lifecycle service errors."""


class FarmNotFoundError(LifecycleError):
    def __init__(self, message: str = "Farm not found or not active"):
        super().__init__(message)


class TextGenerationError(LifecycleError):
    """The text generation collaborator could not be reached or returned an error."""


class FeedbackValidationError(LifecycleError):
    """A feedback payload does not match the shape of its declared type."""
