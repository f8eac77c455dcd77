"""
Error taxonomy for the invoice service.

Every error raised by the core or the stores derives from ``InvoiceError`` and
carries the HTTP status and machine-readable code the API reports.
"""

from typing import Any, Dict, List, Optional


class InvoiceError(Exception):
    status_code = 400
    code = "INVOICE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def details(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.message, "code": self.code}
        body.update(self.details())
        return body


class InvalidAmount(InvoiceError):
    status_code = 422
    code = "INVALID_AMOUNT"


class InvalidLineItem(InvoiceError):
    status_code = 422
    code = "INVALID_LINE_ITEM"

    def __init__(self, index: int, reason: str, field: Optional[str] = None):
        super().__init__(f"Item {index}: {reason}")
        self.index = index
        self.reason = reason
        self.field = field

    def details(self) -> Dict[str, Any]:
        return {"index": self.index, "reason": self.reason}


class InvalidCharge(InvoiceError):
    status_code = 422
    code = "INVALID_CHARGE"


class NegativeNetTotal(InvoiceError):
    status_code = 422
    code = "NEGATIVE_NET_TOTAL"

    def __init__(self, grand_total, special_discount):
        super().__init__(
            f"Special discount {special_discount} exceeds grand total {grand_total}"
        )
        self.grand_total = grand_total
        self.special_discount = special_discount

    def details(self) -> Dict[str, Any]:
        return {
            "grand_total": str(self.grand_total),
            "special_discount": str(self.special_discount),
        }


class ValidationFailed(InvoiceError):
    status_code = 422
    code = "VALIDATION_FAILED"

    def __init__(self, violations: List[Any]):
        super().__init__(f"Invoice failed validation with {len(violations)} violation(s)")
        self.violations = violations

    def details(self) -> Dict[str, Any]:
        return {"violations": [v.model_dump() for v in self.violations]}


class DuplicateInvoiceNumber(InvoiceError):
    status_code = 409
    code = "DUPLICATE_INVOICE_NUMBER"

    def __init__(self, invoice_number: str):
        super().__init__(f"Invoice number {invoice_number} already exists")
        self.invoice_number = invoice_number

    def details(self) -> Dict[str, Any]:
        return {"invoice_number": self.invoice_number}


class NotFound(InvoiceError):
    status_code = 404
    code = "NOT_FOUND"


class StoreUnavailable(InvoiceError):
    status_code = 503
    code = "STORE_UNAVAILABLE"


class AuthenticationFailed(InvoiceError):
    status_code = 401
    code = "AUTH_FAILED"


class NoToken(AuthenticationFailed):
    code = "NO_TOKEN"

    def __init__(self, message: str = "No authentication token provided. Please log in."):
        super().__init__(message)


class InvalidToken(AuthenticationFailed):
    code = "INVALID_TOKEN"

    def __init__(self, message: str = "Invalid authentication token. Please log in again."):
        super().__init__(message)


class ExpiredToken(AuthenticationFailed):
    code = "TOKEN_EXPIRED"

    def __init__(self, message: str = "Authentication token has expired. Please log in again."):
        super().__init__(message)


class InvalidCredentials(AuthenticationFailed):
    code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class RegistrationRejected(InvoiceError):
    status_code = 400
    code = "REGISTRATION_REJECTED"


class PasswordChangeRejected(InvoiceError):
    status_code = 400
    code = "PASSWORD_CHANGE_REJECTED"
