class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ValidationError(AppError):
    """Raised when input is malformed or inconsistent across entities (e.g. mismatched schools)."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class NotFoundError(AppError):
    """Raised when a referenced entity does not exist."""
    def __init__(self, resource_type: str, resource_id: str | None = None, *, message: str | None = None):
        if message is None:
            message = f"{resource_type} with id {resource_id} not found"
        super().__init__(message, status_code=404, details={"resource_type": resource_type})

class ConflictError(AppError):
    """Raised on uniqueness or overlap violations, including double-booked teachers, classes and venues."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)

class InvalidStateError(AppError):
    """Raised when an operation targets a timetable version in the wrong lifecycle state."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ConfigurationError(AppError):
    """Raised when generation prerequisites are missing."""
    def __init__(self, message: str, details: dict = None, status_code: int = 400):
        super().__init__(message, status_code=status_code, details=details)

class MissingAssignmentError(ConfigurationError):
    """Raised when a subject requirement has no teacher assigned for its class."""
    def __init__(self, class_id: str, subject_id: str):
        super().__init__(
            f"Cannot generate: No teacher assigned to subject ID {subject_id} in class ID {class_id}.",
            details={"class_id": class_id, "subject_id": subject_id},
            status_code=409,
        )
