"""RFC 7807 Problem Details for API error responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorCodes:
    """Machine-readable codes used in field errors."""

    FIELD_REQUIRED = "field_required"
    FIELD_TOO_LONG = "field_too_long"
    FIELD_INVALID_FORMAT = "field_invalid_format"
    FIELD_INVALID_VALUE = "field_invalid_value"


class ProblemDetail(BaseModel):
    """Base problem detail document."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(default="about:blank", description="Problem type URI")
    title: str = Field(description="Short summary of the problem type")
    status: int = Field(description="HTTP status code")
    detail: str | None = Field(default=None, description="Explanation for humans")
    instance: str | None = Field(default=None, description="Request path")

    def to_content(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True, by_alias=True)


class ValidationProblemDetail(ProblemDetail):
    errors: list[dict[str, str]] = Field(
        default_factory=list, description="Field-specific errors"
    )


class ConflictProblemDetail(ProblemDetail):
    conflicting_field: str | None = Field(default=None, alias="conflictingField")
    existing_id: str | None = Field(
        default=None,
        alias="existingId",
        description="Id of the stored record the request collides with",
    )


class ProblemDetailFactory:
    """Builds problem details for the error kinds the API reports."""

    @staticmethod
    def validation_failed(
        detail: str,
        instance: str | None = None,
        field_errors: list[dict[str, str]] | None = None,
    ) -> ValidationProblemDetail:
        return ValidationProblemDetail(
            type="/problems/validation-failed",
            title="Validation Failed",
            status=400,
            detail=detail,
            instance=instance,
            errors=field_errors or [],
        )

    @staticmethod
    def malformed_import(
        detail: str, instance: str | None = None
    ) -> ProblemDetail:
        return ProblemDetail(
            type="/problems/malformed-import",
            title="Malformed Import",
            status=400,
            detail=detail,
            instance=instance,
        )

    @staticmethod
    def resource_already_exists(
        resource_type: str,
        detail: str,
        instance: str | None = None,
        conflicting_field: str | None = None,
        existing_id: str | None = None,
    ) -> ConflictProblemDetail:
        return ConflictProblemDetail(
            type=f"/problems/{resource_type}-already-exists",
            title=f"{resource_type.title()} Already Exists",
            status=409,
            detail=detail,
            instance=instance,
            conflicting_field=conflicting_field,
            existing_id=existing_id,
        )

    @staticmethod
    def internal_server_error(
        detail: str, instance: str | None = None
    ) -> ProblemDetail:
        return ProblemDetail(
            type="/problems/internal-error",
            title="Internal Server Error",
            status=500,
            detail=detail,
            instance=instance,
        )
