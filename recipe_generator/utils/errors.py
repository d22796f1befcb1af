"""Error taxonomy for the recipe generation pipeline.

Layered exceptions:
- GenerationFailure: raised by the HTTP clients (chat / image).
- ParseFailure: raised by the response parser.
- RelocationError: raised by the image relocation service.
- AIGenerationError: raised by the orchestrator, wrapping any of the above
  with the pipeline stage where the run stopped.
- InvalidIngredientsError: user input rejected before any network call.

to_error_response() maps them to HTTP-equivalent status classes with a
message that is safe to show to callers.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from recipe_generator.utils.logger import logger


GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


class ClientStage(str, Enum):
    """Which outbound service a GenerationFailure came from."""

    CHAT = "CHAT"
    IMAGE = "IMAGE"


class FailureCause(str, Enum):
    TIMEOUT = "TIMEOUT"
    TRANSPORT = "TRANSPORT"
    HTTP_STATUS = "HTTP_STATUS"
    PARSE = "PARSE"
    RELOCATION = "RELOCATION"


class ParseReason(str, Enum):
    INVALID_JSON = "INVALID_JSON"
    NO_CHOICES = "NO_CHOICES"
    MISSING_CONTENT = "MISSING_CONTENT"
    MISSING_MEAL_NAME = "MISSING_MEAL_NAME"
    MISSING_ARRAY_FIELD = "MISSING_ARRAY_FIELD"
    INVALID_NUTRITION = "INVALID_NUTRITION"
    NO_IMAGE_DATA = "NO_IMAGE_DATA"
    MISSING_IMAGE_URL = "MISSING_IMAGE_URL"


class ErrorStage(str, Enum):
    """Pipeline stage reported by AIGenerationError."""

    TEXT = "TEXT"
    PARSE_TEXT = "PARSE_TEXT"
    IMAGE = "IMAGE"
    PARSE_IMAGE = "PARSE_IMAGE"
    RELOCATE = "RELOCATE"


class InvalidIngredientsError(ValueError):
    """Ingredient list failed validation. Never retried."""

    def __init__(self, message: str, ingredient: Optional[object] = None) -> None:
        super().__init__(message)
        self.ingredient = ingredient


class GenerationFailure(Exception):
    """Outbound call to a generation service failed."""

    def __init__(
        self,
        stage: ClientStage,
        cause: FailureCause,
        message: str = "",
        status_code: Optional[int] = None,
    ) -> None:
        self.stage = stage
        self.cause = cause
        self.status_code = status_code
        detail = f"{stage.value} request failed ({cause.value})"
        if status_code is not None:
            detail += f" with status {status_code}"
        if message:
            detail += f": {message}"
        super().__init__(detail)


class ParseFailure(Exception):
    """Raw model response could not be turned into a domain value."""

    def __init__(self, reason: ParseReason, message: str = "", field: Optional[str] = None) -> None:
        self.reason = reason
        self.field = field
        detail = reason.value
        if field:
            detail += f" ({field})"
        if message:
            detail += f": {message}"
        super().__init__(detail)


class RelocationError(Exception):
    """Generated image could not be moved into durable storage."""


class AIGenerationError(Exception):
    """A pipeline run failed after validation.

    The message is generic and stage-qualified. The underlying exception is
    chained as __cause__ and only ever logged.
    """

    def __init__(
        self,
        stage: ErrorStage,
        cause: FailureCause,
        status_code: Optional[int] = None,
    ) -> None:
        self.stage = stage
        self.cause = cause
        self.status_code = status_code
        if cause is FailureCause.TIMEOUT:
            message = f"Recipe generation timed out at stage {stage.value}. Please try again later."
        else:
            message = f"Recipe generation failed at stage {stage.value}. Please try again later."
        super().__init__(message)

    @property
    def is_transient(self) -> bool:
        """Whether re-running the pipeline might succeed."""
        if self.cause in (FailureCause.TIMEOUT, FailureCause.TRANSPORT):
            return True
        if self.cause is FailureCause.HTTP_STATUS and self.status_code is not None:
            return self.status_code == 429 or self.status_code >= 500
        return False


class ErrorResponse(BaseModel):
    """Caller-facing error payload."""

    model_config = ConfigDict(frozen=True)

    status: int = Field(description="HTTP-equivalent status code")
    message: str = Field(description="Safe, user-facing message")
    timestamp: datetime = Field(default_factory=datetime.now)
    stage: Optional[str] = Field(None, description="Pipeline stage where the run stopped")


def to_error_response(exc: Exception) -> ErrorResponse:
    """Map a pipeline exception to an ErrorResponse.

    Invalid input maps to 400, timeouts to 504 and every other generation
    failure to 500. Unknown exceptions get a fixed generic message.
    """
    if isinstance(exc, InvalidIngredientsError):
        logger.warning(f"InvalidIngredientsError: {exc}")
        return ErrorResponse(status=400, message=str(exc))

    if isinstance(exc, AIGenerationError):
        logger.error(f"AIGenerationError: stage={exc.stage.value} cause={exc.cause.value}: {exc.__cause__}")
        status = 504 if exc.cause is FailureCause.TIMEOUT else 500
        return ErrorResponse(status=status, message=str(exc), stage=exc.stage.value)

    if isinstance(exc, RelocationError):
        logger.error(f"RelocationError: {exc}")
        return ErrorResponse(
            status=500,
            message=f"Recipe generation failed at stage {ErrorStage.RELOCATE.value}. Please try again later.",
            stage=ErrorStage.RELOCATE.value,
        )

    logger.error(f"Unexpected exception: {exc}", exc_info=exc)
    return ErrorResponse(status=500, message=GENERIC_ERROR_MESSAGE)
