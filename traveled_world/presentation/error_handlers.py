"""Centralized error handling for the presentation layer."""

from fastapi import Request
from fastapi.responses import JSONResponse

from ..domain.exceptions import (
    DomainError,
    DuplicateCityError,
    MalformedImportError,
    ValidationError,
)
from .problem_details import (
    ConflictProblemDetail,
    ErrorCodes,
    ProblemDetail,
    ProblemDetailFactory,
    ValidationProblemDetail,
)


class ErrorFormatter:
    """Formats errors for consistent user experience."""

    @staticmethod
    def format_user_friendly_message(error: Exception) -> str:
        """Convert technical errors to user-friendly messages."""
        if isinstance(error, DuplicateCityError):
            return (
                f'"{error.city_name}" is already in your list. '
                "Open the existing city instead of adding it again."
            )

        elif isinstance(error, MalformedImportError):
            return f"The imported file could not be read: {error}"

        elif isinstance(error, ValidationError):
            error_msg = str(error)
            if "name cannot be empty" in error_msg.lower():
                return "Please enter a name."
            elif "longer than" in error_msg.lower():
                return "The name is too long. Please use a shorter name."
            return error_msg

        else:
            return "Something went wrong. Please try again."


def _extract_field_errors(error: ValidationError) -> list[dict[str, str]]:
    """Derive field-specific errors from a domain validation message."""
    errors = []
    error_msg = str(error).lower()

    if "name" in error_msg:
        if "empty" in error_msg:
            errors.append(
                {
                    "field": "name",
                    "code": ErrorCodes.FIELD_REQUIRED,
                    "message": "Name is required",
                }
            )
        elif "longer than" in error_msg:
            errors.append(
                {
                    "field": "name",
                    "code": ErrorCodes.FIELD_TOO_LONG,
                    "message": "Name is too long",
                }
            )
        elif "control characters" in error_msg:
            errors.append(
                {
                    "field": "name",
                    "code": ErrorCodes.FIELD_INVALID_FORMAT,
                    "message": "Name contains invalid characters",
                }
            )

    if any(word in error_msg for word in ("latitude", "longitude", "coordinates")):
        errors.append(
            {
                "field": "coordinates",
                "code": ErrorCodes.FIELD_INVALID_VALUE,
                "message": "Coordinates must be a valid latitude/longitude pair",
            }
        )

    return errors


def handle_domain_error(error: DomainError, request: Request) -> JSONResponse:
    """Convert domain errors to RFC 7807 problem responses."""
    user_message = ErrorFormatter.format_user_friendly_message(error)
    instance = str(request.url.path)

    problem: ProblemDetail | ValidationProblemDetail | ConflictProblemDetail
    if isinstance(error, DuplicateCityError):
        problem = ProblemDetailFactory.resource_already_exists(
            resource_type="city",
            detail=user_message,
            instance=instance,
            conflicting_field="coordinates",
            existing_id=error.existing_id,
        )
    elif isinstance(error, MalformedImportError):
        problem = ProblemDetailFactory.malformed_import(
            detail=user_message, instance=instance
        )
    elif isinstance(error, ValidationError):
        problem = ProblemDetailFactory.validation_failed(
            detail=user_message,
            instance=instance,
            field_errors=_extract_field_errors(error),
        )
    else:
        problem = ProblemDetailFactory.internal_server_error(
            detail="An unexpected error occurred. Please try again.",
            instance=instance,
        )

    return JSONResponse(status_code=problem.status, content=problem.to_content())
