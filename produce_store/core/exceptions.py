"""
Domain exceptions

Services raise these; routers translate them to HTTP responses using
the status_code each one carries.
"""


class StoreError(Exception):
    """Base class for business-rule failures"""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(StoreError):
    status_code = 404


class ValidationError(StoreError):
    status_code = 400


class PermissionDeniedError(StoreError):
    status_code = 403


class InvalidTransitionError(StoreError):
    """Requested status change is not allowed from the current status"""
    status_code = 409


class DeliveryUnavailableError(StoreError):
    """Delivery cannot be offered to the requested pincode"""
    status_code = 422


class PaymentVerificationError(StoreError):
    status_code = 400


class RateLimitedError(StoreError):
    status_code = 429


class ConfigurationError(StoreError):
    """A feature was used without its credentials configured"""
    status_code = 503


class PaymentGatewayError(StoreError):
    """The payment gateway rejected or failed a request"""
    status_code = 502
