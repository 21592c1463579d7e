"""
Error types shared by the reading fluency pipeline services.
"""

from typing import Optional


class FluencyPipelineError(Exception):
    """Base class for pipeline failures.

    ``stage`` names the processing step that failed (``"render"``,
    ``"encode"``, ...) when the error is raised by the video orchestrator.
    """

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage

    def with_stage(self, stage: str) -> "FluencyPipelineError":
        if self.stage is None:
            self.stage = stage
        return self


class InvalidInputError(FluencyPipelineError, ValueError):
    """Raised for malformed durations, inconsistent counts or empty word lists."""


class MeasurementError(FluencyPipelineError):
    """Raised when the text measurement capability is unavailable."""


class EncodingError(FluencyPipelineError):
    """Raised when the external encoder cannot launch or exits non-zero."""

    def __init__(
        self,
        message: str,
        stage: Optional[str] = "encode",
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(message, stage=stage)
        self.returncode = returncode
        self.stderr = stderr


class StorageError(FluencyPipelineError):
    """Raised when the working area cannot be created, written or removed."""
