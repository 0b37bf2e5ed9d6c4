"""Exception classes for Monkey AI"""

from typing import Optional


class MonkeyAIError(Exception):
    """Base exception for all Monkey AI errors"""
    pass


class LaunchError(MonkeyAIError):
    """Raised when no candidate path yields a working Ollama executable"""
    pass


class StartupFailure(MonkeyAIError):
    """
    Raised when every attempt of the startup retry loop failed

    Attributes:
        attempts: Number of attempts that were made
    """

    def __init__(self, message: str, attempts: Optional[int] = None):
        self.attempts = attempts
        super().__init__(message)


class RequestFailure(MonkeyAIError):
    """Raised when an HTTP call to Ollama or the remote API fails"""
    pass


class ResourceFetchFailure(MonkeyAIError):
    """Raised when `ollama pull` exits non-zero or cannot be spawned"""

    def __init__(self, message: str, model: str, exit_code: Optional[int] = None):
        self.model = model
        self.exit_code = exit_code
        super().__init__(message)


class ConfigurationError(MonkeyAIError):
    """Raised when a required setting (e.g. API key) is missing"""
    pass


class ModelCreationError(MonkeyAIError):
    """Raised when a model creator step exits non-zero"""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        self.exit_code = exit_code
        super().__init__(message)


class ContentRejected(MonkeyAIError):
    """Raised when the content filter refuses a request"""
    pass
