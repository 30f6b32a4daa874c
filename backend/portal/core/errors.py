"""API error classes.

HTTP status codes and machine-readable error codes for the portal API.

WHY CUSTOM ERROR CLASSES:
- Consistent error response format across all endpoints
- Easy to map to HTTP status codes in exception handlers
- Type-safe error handling in services
"""


class APIError(Exception):
    """Base class for API errors.

    All API errors have a code, message, and HTTP status.
    Subclasses set default status_code.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(APIError):
    """Field validation failed (400).

    Use for request body validation errors, upload constraint violations, etc.
    """

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorizedError(APIError):
    """Authentication required (401)."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
        )


class ForbiddenError(APIError):
    """Not allowed to access resource (403).

    Use when auth is valid but the session may not reach the resource, e.g.
    the dashboard before onboarding is complete.
    """

    def __init__(
        self,
        message: str = "Access denied",
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="FORBIDDEN",
            message=message,
            status_code=403,
            details=details,
        )


class OnboardingRequiredError(ForbiddenError):
    """Onboarding must be finished before this resource is available (403).

    Details carry the redirect target so clients can follow the route guard.
    """

    def __init__(self, redirect_to: str) -> None:
        APIError.__init__(
            self,
            code="ONBOARDING_REQUIRED",
            message="Complete onboarding to access this resource",
            status_code=403,
            details=[{"redirect_to": redirect_to}],
        )


class NotFoundError(APIError):
    """Resource not found (404)."""

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
        )


class ConflictError(APIError):
    """Duplicate or conflicting resource (409), e.g. signing up twice."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(code=code, message=message, status_code=409)


class InvalidStateError(APIError):
    """Business rule violation (422).

    Use when the request is syntactically valid but the current state does
    not allow it, e.g. advancing past a section with invalid required fields.
    """

    def __init__(self, message: str, details: list[dict] | None = None) -> None:
        super().__init__(
            code="INVALID_STATE_TRANSITION",
            message=message,
            status_code=422,
            details=details,
        )


class ServiceUnavailableError(APIError):
    """Remote backend could not be reached (503)."""

    def __init__(self, message: str = "Backend temporarily unavailable") -> None:
        super().__init__(
            code="SERVICE_UNAVAILABLE",
            message=message,
            status_code=503,
        )

