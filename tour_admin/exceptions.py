class TourAdminError(Exception):
    """Base exception for Tour Admin errors."""

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message or "An error occurred in the Tour Admin console"
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        """String representation of the error."""
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Convert the exception to a dictionary."""
        error_dict = {
            'error': self.__class__.__name__,
            'message': self.message,
        }

        if self.code:
            error_dict['code'] = self.code

        if self.details:
            error_dict['details'] = self.details

        return error_dict


class ConfigError(TourAdminError):
    """Exception raised for configuration errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Configuration error"
        super().__init__(message, code, details)


class DatabaseError(TourAdminError):
    """Exception raised when the document store fails (network, permission)."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Database error"
        super().__init__(message, code, details)


class StorageError(TourAdminError):
    """Exception raised when a blob upload fails."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Storage error"
        super().__init__(message, code, details)


class ValidationError(TourAdminError):
    """Exception raised for data validation errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Validation error"
        super().__init__(message, code, details)


class FeaturedLimitError(ValidationError):
    """Exception raised when too many tours would be featured."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Featured tour limit reached"
        super().__init__(message, code, details)


class UploadTooLargeError(ValidationError):
    """Exception raised when an upload exceeds the size cap."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Upload is too large"
        super().__init__(message, code, details)


class NotFoundError(TourAdminError):
    """Exception raised when a requested resource is not found."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Resource not found"
        super().__init__(message, code, details)


class AuthError(TourAdminError):
    """Exception raised for sign-in and allow-list failures."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Authentication error"
        super().__init__(message, code, details)


class ReportingError(TourAdminError):
    """Exception raised for reporting errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Reporting error"
        super().__init__(message, code, details)
