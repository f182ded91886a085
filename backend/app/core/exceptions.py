class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )

class InvalidSubstitutionError(AppError):
    """Raised when a substitution violates a domain rule (teacher, group, times, reason)."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class NoTeacherAvailableError(AppError):
    """Raised when auto-assignment finds nobody with weekly capacity left."""
    def __init__(self, week: str):
        super().__init__(
            "No teacher available within the weekly quota",
            status_code=409,
            details={"week": week},
        )
