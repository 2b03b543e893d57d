"""Exceptions raised by the prompt generation job."""


class ConfigError(RuntimeError):
    """Configuration is unusable; the process cannot start."""


class ConfigMissingError(ConfigError):
    def __init__(self, name: str):
        super().__init__(f"Missing required environment variable: {name}")
        self.name = name


class PipelineError(RuntimeError):
    """A single pass failed. The scheduler keeps running."""


class RequestError(PipelineError):
    """The completion API could not be reached or answered garbage."""


class EmptyResponseError(PipelineError):
    """The completion API answered without any choices."""


class MalformedOutputError(PipelineError):
    def __init__(self, message: str, cleaned: str = ""):
        super().__init__(message)
        self.cleaned = cleaned


class BackendRejectedError(PipelineError):
    def __init__(self, status_code: int, body: str):
        super().__init__(f"backend rejected data (HTTP {status_code}): {body}")
        self.status_code = status_code
        self.body = body


class TransportError(PipelineError):
    """The backend could not be reached."""
