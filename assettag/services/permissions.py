"""
Permission maps.
Each user carries boolean permission flags; their role supplies the defaults.
"""
from typing import Dict, Optional

from ..models.models import User


ROLES = ["Administrator", "Manager", "User", "Viewer"]

# Defaults for the "User" role
DEFAULT_PERMISSIONS: Dict[str, bool] = {
    # Dashboard
    "viewDashboard": True,
    # Assets
    "viewAssets": True,
    "createAssets": True,
    "editAssets": True,
    "deleteAssets": False,
    "exportAssets": True,
    "uploadDocuments": True,
    "downloadDocuments": True,
    "deleteDocuments": False,
    # Notes
    "createNotes": True,
    "editNotes": True,
    "deleteNotes": False,
    # Tags
    "viewTags": True,
    "createTags": False,
    "editTags": False,
    "deleteTags": False,
    # Maintenance
    "viewMaintenance": True,
    "createMaintenance": True,
    "editMaintenance": True,
    "deleteMaintenance": False,
    # Users
    "viewUsers": False,
    "createUsers": False,
    "editUsers": False,
    "deleteUsers": False,
    "managePermissions": False,
    # Reports
    "viewReports": True,
    "exportReports": True,
    # Activities
    "viewActivities": True,
    "createActivities": True,
    # Notifications
    "viewNotifications": True,
    "deleteNotifications": True,
    # Settings
    "viewSettings": False,
    "editSettings": False,
    "regenerateApiKey": False,
    "deleteAllAssets": False,
}

_MANAGER_GRANTS = {
    "deleteAssets", "deleteDocuments", "deleteNotes",
    "createTags", "editTags", "deleteTags",
    "deleteMaintenance", "viewUsers", "viewSettings",
}


def role_defaults(role: Optional[str]) -> Dict[str, bool]:
    if role == "Administrator":
        return {key: True for key in DEFAULT_PERMISSIONS}
    if role == "Manager":
        return {key: (value or key in _MANAGER_GRANTS) for key, value in DEFAULT_PERMISSIONS.items()}
    if role == "Viewer":
        return {key: key.startswith("view") for key in DEFAULT_PERMISSIONS}
    return dict(DEFAULT_PERMISSIONS)


def effective_permissions(user: User) -> Dict[str, bool]:
    """Role defaults overlaid with the user's stored flags."""
    perm_map = role_defaults(user.role)
    if user.permissions:
        perm_map.update({k: bool(v) for k, v in user.permissions.items() if k in DEFAULT_PERMISSIONS})
    return perm_map


def is_admin(user: User) -> bool:
    return (user.role or "") == "Administrator"


def has_permission(user: User, perm: str) -> bool:
    if is_admin(user):
        return True
    return bool(effective_permissions(user).get(perm))
