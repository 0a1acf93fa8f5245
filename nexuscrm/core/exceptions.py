"""
Custom exceptions for NexusCRM.
Provides consistent error handling across the application.
"""


class NexusCRMException(Exception):
    """Base exception for NexusCRM"""
    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class AuthError(NexusCRMException):
    """Bad credentials, expired session or an unusable profile"""
    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)


class ProfileMissingError(AuthError):
    """A session exists but its profile row cannot be read. Forces sign-out."""
    def __init__(self, user_id: str = None, reason: str = None):
        message = "Profile not found"
        if user_id:
            message = f"Profile for user '{user_id}' not found"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class PermissionDeniedError(AuthError):
    """Current role may not perform the action"""
    def __init__(self, message: str = "You don't have permission to manage users"):
        super().__init__(message)


class RepositoryError(NexusCRMException):
    """Network or validation failure on a contact/profile read or write"""
    def __init__(self, message: str = "Backend request failed"):
        super().__init__(message)


class AssistantError(NexusCRMException):
    """Model call or tool execution failed"""
    def __init__(self, message: str = "Assistant request failed"):
        super().__init__(message)
