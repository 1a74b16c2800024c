from rbac import exceptions
from rbac import role_config
from rbac import schemas

from rbac.exceptions import (AuthorizationError, InvariantViolationError,
                             NotFoundError, RbacError, SelfModificationError,
                             ValidationError,)
from rbac.role_config import (Feature, ROLES,)
from rbac.schemas import (AuditEntry, Library, LibraryAssignment, Role,
                          RoleAssignmentResult, RoleSnapshot, User,)

__all__ = ['AuditEntry', 'AuthorizationError', 'Feature',
           'InvariantViolationError', 'Library', 'LibraryAssignment',
           'NotFoundError', 'ROLES', 'RbacError', 'Role',
           'RoleAssignmentResult', 'RoleSnapshot', 'SelfModificationError',
           'User', 'ValidationError', 'exceptions', 'role_config', 'schemas']
