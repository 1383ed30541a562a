"""Application exception classes and handlers."""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AppException(Exception):
    """Base application exception.

    ``operation`` names the boundary operation that failed so a host can
    tell the person which action did not go through.
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        operation: str | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.operation = operation
        super().__init__(message)


# --- Storage ---


class StorageError(AppException):
    """Base chat storage error."""

    def __init__(
        self,
        message: str = "Chat storage error",
        code: str = "STORAGE_ERROR",
        status_code: int = 500,
        operation: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            status_code=status_code,
            operation=operation,
        )


class StorageUnavailableError(StorageError):
    """The storage medium cannot be opened, read or written."""

    def __init__(
        self,
        message: str = "Chat storage is unavailable",
        operation: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_UNAVAILABLE",
            status_code=503,
            operation=operation,
        )


class StorageCorruptError(StorageError):
    """A stored history blob cannot be decoded."""

    def __init__(self, chat_id: str, operation: str | None = None) -> None:
        self.chat_id = chat_id
        super().__init__(
            message=f"Stored history for chat {chat_id} is corrupt",
            code="STORAGE_CORRUPT",
            status_code=500,
            operation=operation,
        )


# --- Remote completion ---


class RemoteError(AppException):
    """Base remote completion error."""

    def __init__(
        self,
        message: str,
        code: str = "REMOTE_ERROR",
        status_code: int = 502,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            status_code=status_code,
            operation="complete",
        )


class RemoteUnreachableError(RemoteError):
    """The completion service could not be reached."""

    def __init__(self, message: str = "Completion service is unreachable") -> None:
        super().__init__(
            message=message, code="REMOTE_UNREACHABLE", status_code=503
        )


class RemoteRejectedError(RemoteError):
    """The completion service refused or failed the request."""

    def __init__(self, message: str = "Completion request was rejected") -> None:
        super().__init__(message=message, code="REMOTE_REJECTED", status_code=502)


class RemoteMalformedError(RemoteError):
    """The completion service replied with no usable text."""

    def __init__(self, message: str = "Completion reply was empty or invalid") -> None:
        super().__init__(message=message, code="REMOTE_MALFORMED", status_code=502)


# --- Exchange ---


class ExchangeError(AppException):
    """A turn exchange failed; wraps the remote or storage cause."""

    def __init__(self, cause: AppException) -> None:
        self.cause = cause
        super().__init__(
            message=f"Exchange failed: {cause.message}",
            code="EXCHANGE_FAILED",
            status_code=cause.status_code,
            operation="send_turn",
        )


# --- Session ---


class NoActiveChatError(AppException):
    """A message was sent before any chat was started or loaded."""

    def __init__(self) -> None:
        super().__init__(
            message="Please start a new chat first",
            code="NO_ACTIVE_CHAT",
            status_code=409,
            operation="send",
        )


class EmptyMessageError(AppException):
    """The message text is blank."""

    def __init__(self) -> None:
        super().__init__(
            message="Message must not be empty",
            code="EMPTY_MESSAGE",
            status_code=400,
            operation="send",
        )


# --- Configuration ---


class MissingApiKeyError(AppException):
    """The selected LLM provider has no API key configured."""

    def __init__(self, provider: str) -> None:
        super().__init__(
            message=f"API key for LLM provider '{provider}' is not configured",
            code="MISSING_API_KEY",
            status_code=500,
        )


# --- Exception Handlers ---


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Central exception handler for AppException."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": exc.status_code,
            "message": exc.message,
            "code": exc.code,
        },
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return request validation errors in the common error envelope."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    detail = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=422,
        content={
            "status": 422,
            "message": f"{location}: {detail}" if location else detail,
            "code": "VALIDATION_ERROR",
        },
    )
