"""
Error kinds raised by the access-control core.

assign_role reports these as structured results; assign_libraries and the
snapshot issuer raise them. Messages are part of the contract, callers match
on them.
"""


class RbacError(Exception):
    """Base class for access-control failures"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthorizationError(RbacError):
    """Actor is missing or not an administrator"""


class SelfModificationError(RbacError):
    """Actor tried to change their own role"""


class NotFoundError(RbacError):
    """User or library does not exist"""


class InvariantViolationError(RbacError):
    """Change would leave the system without an administrator"""


class ValidationError(RbacError):
    """Invalid input (unknown library ids, wrong role for the operation, bad role value)"""


# Documented messages
ONLY_ADMINS_MESSAGE = "Only administrators can assign roles"
SELF_MODIFICATION_MESSAGE = "You cannot modify your own role"
USER_NOT_FOUND_MESSAGE = "User not found"
LAST_ADMIN_MESSAGE = "Cannot demote the last administrator"
LIBRARIANS_ONLY_MESSAGE = "Can only assign libraries to librarians"
INVALID_LIBRARIES_MESSAGE = "Invalid library IDs: {ids}"
INVALID_ROLE_MESSAGE = "Invalid role: {role}"
