from __future__ import annotations


class PipelineError(Exception):
    """Base class for failures raised inside the generation pipeline."""


class TransportError(PipelineError):
    """Network failure, timeout or non-success HTTP status."""


class ServiceError(TransportError):
    def __init__(self, status_code: int, message: str = "") -> None:
        self.status_code = status_code
        detail = f": {message}" if message else ""
        super().__init__(f"API request failed with status {status_code}{detail}")


class EmptyResponseError(PipelineError):
    """The service answered successfully but without completion text."""


class SchemaError(PipelineError):
    """The completion text is not JSON or does not match the stage schema."""


class EmptyResultError(PipelineError):
    """A well-formed reply that carries no usable content."""


class FallbackGenerationError(PipelineError):
    """The local generator failed; there is nothing left to fall back to."""


class StageOrderError(PipelineError):
    """A stage was advanced or started out of order."""


class StageBusyError(PipelineError):
    """A remote stage call is already in flight for this session."""


class ConfigError(PipelineError):
    pass
