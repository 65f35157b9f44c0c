"""
Custom exceptions for the activity tracker.
Provides specific exception types for validation, lookup and storage failures.
"""


class TrackerException(Exception):
    """Base exception for activity tracker application"""
    pass


class ValidationError(TrackerException):
    """Raised when input validation fails, before anything is written"""
    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"Validation error for {field}: {message}")


class NotFoundError(TrackerException):
    """Raised when a referenced entity does not exist"""
    pass


class UserNotFoundError(NotFoundError):
    """Raised when a user cannot be resolved by id or channel address"""
    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__(f"User not found: {identifier}")


class StorageError(TrackerException):
    """Raised when database operations fail"""
    def __init__(self, operation: str, details: str):
        self.operation = operation
        self.details = details
        super().__init__(f"Database {operation} failed: {details}")
