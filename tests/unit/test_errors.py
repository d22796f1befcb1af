"""Unit tests for the error taxonomy and caller-facing error responses."""

import pytest

from recipe_generator.utils.errors import (
    GENERIC_ERROR_MESSAGE,
    AIGenerationError,
    ClientStage,
    ErrorStage,
    FailureCause,
    GenerationFailure,
    InvalidIngredientsError,
    ParseFailure,
    ParseReason,
    RelocationError,
    to_error_response,
)


class TestExceptions:
    """Test exception messages and attributes."""

    def test_generation_failure_message(self):
        failure = GenerationFailure(ClientStage.IMAGE, FailureCause.HTTP_STATUS, status_code=429)

        assert str(failure) == "IMAGE request failed (HTTP_STATUS) with status 429"

    def test_parse_failure_message(self):
        failure = ParseFailure(ParseReason.MISSING_ARRAY_FIELD, "expected an array", field="instructions")

        assert str(failure) == "MISSING_ARRAY_FIELD (instructions): expected an array"

    def test_ai_generation_error_message_is_generic(self):
        """Test that messages name the stage and nothing from upstream."""
        timeout = AIGenerationError(ErrorStage.IMAGE, FailureCause.TIMEOUT)
        failed = AIGenerationError(ErrorStage.PARSE_TEXT, FailureCause.PARSE)

        assert str(timeout) == "Recipe generation timed out at stage IMAGE. Please try again later."
        assert str(failed) == "Recipe generation failed at stage PARSE_TEXT. Please try again later."

    @pytest.mark.parametrize(
        "cause, status_code, transient",
        [
            (FailureCause.TIMEOUT, None, True),
            (FailureCause.TRANSPORT, None, True),
            (FailureCause.HTTP_STATUS, 429, True),
            (FailureCause.HTTP_STATUS, 502, True),
            (FailureCause.HTTP_STATUS, 400, False),
            (FailureCause.HTTP_STATUS, None, False),
            (FailureCause.PARSE, None, False),
            (FailureCause.RELOCATION, None, False),
        ],
    )
    def test_is_transient(self, cause, status_code, transient):
        assert AIGenerationError(ErrorStage.TEXT, cause, status_code).is_transient is transient


class TestErrorResponse:
    """Test to_error_response() mapping."""

    def test_invalid_ingredients_is_400(self):
        response = to_error_response(InvalidIngredientsError("Ingredients list cannot be empty."))

        assert response.status == 400
        assert response.message == "Ingredients list cannot be empty."
        assert response.stage is None

    def test_timeout_is_504(self):
        response = to_error_response(AIGenerationError(ErrorStage.IMAGE, FailureCause.TIMEOUT))

        assert response.status == 504
        assert response.stage == "IMAGE"

    @pytest.mark.parametrize("stage", list(ErrorStage))
    def test_other_generation_failures_are_500(self, stage):
        response = to_error_response(AIGenerationError(stage, FailureCause.HTTP_STATUS, 503))

        assert response.status == 500
        assert response.stage == stage.value

    def test_cause_detail_never_leaks(self):
        """Test that the chained upstream error stays out of the response."""
        try:
            try:
                raise GenerationFailure(ClientStage.CHAT, FailureCause.HTTP_STATUS, "sk-secret body", 401)
            except GenerationFailure as e:
                raise AIGenerationError(ErrorStage.TEXT, FailureCause.HTTP_STATUS, 401) from e
        except AIGenerationError as error:
            response = to_error_response(error)

        assert "sk-secret" not in response.message

    def test_relocation_error_is_500(self):
        response = to_error_response(RelocationError("disk full"))

        assert response.status == 500
        assert response.stage == "RELOCATE"
        assert "disk full" not in response.message

    def test_unknown_exception_gets_generic_message(self):
        response = to_error_response(RuntimeError("internal detail"))

        assert response.status == 500
        assert response.message == GENERIC_ERROR_MESSAGE
        assert response.timestamp is not None
