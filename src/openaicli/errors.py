from typing import Any, Dict, Optional


class OpenAIError(ValueError):
    """Base class for every failure raised by openaicli."""


class AuthenticationError(OpenAIError):
    pass


class ImageDecodeError(OpenAIError):
    pass


class APIError(OpenAIError):
    """Non-2xx response from the API, with the fields of its error envelope."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        error_type: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.error_type = error_type

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.message} (status: {self.status})"
        return self.message

    @classmethod
    def from_body(cls, status: int, body: Optional[Dict[str, Any]], fallback: str = "") -> "APIError":
        err = (body or {}).get("error") if isinstance(body, dict) else None
        if isinstance(err, dict):
            return cls(
                err.get("message") or fallback or "Unknown error",
                status=status,
                code=err.get("code"),
                error_type=err.get("type"),
            )
        return cls(fallback or "Unknown error", status=status)
