"""Custom application exceptions."""

from typing import Any

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception."""

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An unexpected error occurred",
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class ValidationError(AppException):
    """Validation error exception."""

    def __init__(self, detail: str = "Validation failed", errors: list[dict[str, Any]] | None = None) -> None:
        self.errors = errors
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class NotFoundError(AppException):
    """Resource not found exception."""

    def __init__(self, resource: str = "Resource", identifier: str | None = None) -> None:
        self.resource = resource
        self.identifier = identifier
        detail = f"{resource} not found"
        if identifier:
            detail = f"{resource} with ID '{identifier}' not found"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class AuthenticationError(AppException):
    """Authentication failed exception."""

    def __init__(self, detail: str = "Authentication failed") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(AppException):
    """Authorization denied exception."""

    def __init__(self, detail: str = "You don't have permission to access this resource") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class InvalidTransition(AppException):
    """Requested action is not allowed from the current status."""

    def __init__(
        self,
        detail: str = "This operation is not allowed for the current status",
        current: str | None = None,
        action: str | None = None,
    ) -> None:
        self.current = current
        self.action = action
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InvalidVendorState(AppException):
    """Target vendor is not approved."""

    def __init__(self, vendor_status: str | None = None) -> None:
        self.vendor_status = vendor_status
        detail = "Vendor is not approved"
        if vendor_status:
            detail = f"Vendor is not approved (status: {vendor_status})"
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InvalidStatus(AppException):
    """Unrecognized status value."""

    def __init__(self, value: Any = None) -> None:
        self.value = value
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unrecognized status value: {value!r}",
        )


class VendorPendingApproval(AppException):
    """Vendor account is still awaiting approval."""

    def __init__(self, redirect_to: str) -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Vendor account is pending approval",
            headers={"X-Vendor-Access": "REDIRECT_PENDING", "Location": redirect_to},
        )


class VendorAccessDenied(AppException):
    """Vendor account was rejected or suspended."""

    def __init__(self, vendor_status: str) -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Vendor account is {vendor_status.lower()}",
            headers={"X-Vendor-Access": "SHOW_REJECTED"},
        )

