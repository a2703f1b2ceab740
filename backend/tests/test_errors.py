from storefront.errors import (
    AppError, ExternalServiceError, NotFoundError, RateLimitError,
    ValidationError, format_error_response,
)


def test_app_error_defaults():
    e = AppError("Test error", "TEST_ERROR")
    assert e.status_code == 500
    assert e.is_operational is True

def test_subclass_codes():
    assert (ValidationError("bad", "email").code, ValidationError("bad").status_code) == ("VALIDATION_ERROR", 400)
    assert (NotFoundError().message, NotFoundError().status_code) == ("Resource not found", 404)
    assert RateLimitError(retry_after=3).status_code == 429
    assert ExternalServiceError("down", "openai").service == "openai"

def test_format_includes_field_only_for_validation():
    assert format_error_response(ValidationError("Invalid email", "email")) == {
        "error": {"message": "Invalid email", "code": "VALIDATION_ERROR", "field": "email"}
    }
    assert format_error_response(NotFoundError()) == {"error": {"message": "Resource not found", "code": "NOT_FOUND"}}

def test_unknown_errors_are_opaque_outside_development():
    assert format_error_response(ValueError("db password")) == {
        "error": {"message": "An unexpected error occurred", "code": "INTERNAL_ERROR"}
    }
    dev = format_error_response(ValueError("db password"), development=True)["error"]
    assert dev["message"] == "db password"
    assert "stack" in dev
