# role_config.py
"""
Role capability configuration.
Defines which features each role may use, and which of those features are
limited to the libraries a librarian is assigned to.
"""

from enum import Enum


class Feature(str, Enum):
    """Feature identifiers checked by route/feature guards"""
    BASIC_FEATURES = "basic_features"
    BORROW_BOOKS = "borrow_books"
    VIEW_LIBRARIES = "view_libraries"
    RETURN_BOOKS = "return_books"
    MANAGE_INVENTORY = "manage_inventory"          # add/edit/remove books
    VIEW_BORROW_RECORDS = "view_borrow_records"
    LIBRARY_MANAGEMENT = "library_management"      # edit library details
    USER_MANAGEMENT = "user_management"            # role assignment


def _role_key(role_name) -> str:
    if isinstance(role_name, Enum):
        role_name = role_name.value
    return str(role_name).upper()


ROLES = {
    "USER": {
        "name": "User",
        "description": "Borrows and browses books",
        "features": [
            Feature.BASIC_FEATURES,
            Feature.BORROW_BOOKS,
            Feature.VIEW_LIBRARIES,
        ],
        "library_scoped": [],
    },
    "LIBRARIAN": {
        "name": "Librarian",
        "description": "Manages inventory and borrowing records of assigned libraries",
        "features": [
            Feature.BASIC_FEATURES,
            Feature.BORROW_BOOKS,
            Feature.VIEW_LIBRARIES,
            Feature.RETURN_BOOKS,
            Feature.LIBRARY_MANAGEMENT,
            Feature.MANAGE_INVENTORY,
            Feature.VIEW_BORROW_RECORDS,
        ],
        "library_scoped": [
            Feature.LIBRARY_MANAGEMENT,
            Feature.MANAGE_INVENTORY,
            Feature.VIEW_BORROW_RECORDS,
        ],
    },
    "ADMIN": {
        "name": "Administrator",
        "description": "Full system access, assigns roles to everyone but themselves",
        "features": ["*"],  # All features
        "library_scoped": [],
    },
}


def get_role_config(role_name: str) -> dict:
    """Get role configuration by name, None for unknown roles"""
    return ROLES.get(_role_key(role_name))


def validate_role(role_name: str) -> bool:
    """Validate if role exists"""
    return _role_key(role_name) in ROLES


def get_role_features(role_name: str) -> list:
    """Get features for role (['*'] for admins)"""
    config = get_role_config(role_name)
    return config.get("features", []) if config else []


def get_library_scoped_features(role_name: str) -> list:
    """Get the features a role may only use inside its assigned libraries"""
    config = get_role_config(role_name)
    return config.get("library_scoped", []) if config else []


def role_has_feature(role_name: str, feature) -> bool:
    """Whether the role lists the feature, library scope aside"""
    features = get_role_features(role_name)
    return "*" in features or feature in features
