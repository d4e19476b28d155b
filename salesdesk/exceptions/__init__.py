"""Custom exceptions for the SalesDesk application."""


class SalesDeskError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class BusinessLogicError(SalesDeskError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class ValidationError(BusinessLogicError):
    """Raised when a form or document is incomplete or malformed."""
    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)


class InvalidInputError(ValidationError):
    """Raised by the pricing engine when given negative quantities or prices."""


class NotFoundError(SalesDeskError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class UnauthorizedError(SalesDeskError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="Unauthorized access"):
        super().__init__(message, 403)


class RenderError(SalesDeskError):
    """Raised when a PDF document cannot be laid out."""
    def __init__(self, message="No se pudo generar el documento", payload=None):
        super().__init__(message, 500, payload)


class ShareError(SalesDeskError):
    """Raised when a rendered document cannot be uploaded or dispatched."""
    def __init__(self, message="No se pudo compartir el documento", payload=None):
        super().__init__(message, 502, payload)


class PersistenceError(SalesDeskError):
    """Raised when a write to the database fails; the user may retry."""
    def __init__(self, message="No se pudieron guardar los cambios. Intenta nuevamente.", payload=None):
        super().__init__(message, 503, payload)
