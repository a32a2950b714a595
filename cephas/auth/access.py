"""
Static role tables: hierarchy levels, module access, action permissions and
the per-role default permission lists.

All checks accept a role value in any stored spelling (see ``Role.parse``);
a missing or unrecognized role, module or action is never granted.
"""
from typing import Dict, FrozenSet, Iterable, List, Optional

from ..schemas.enums import Role

SA = Role.super_admin
SV = Role.supervisor
INST = Role.installer
ACC = Role.accountant
WH = Role.warehouse

ROLE_HIERARCHY: Dict[Role, int] = {
    SA: 50,
    SV: 40,
    ACC: 30,
    WH: 20,
    INST: 10,
}

MODULE_PERMISSIONS: Dict[str, FrozenSet[Role]] = {
    "dashboard": frozenset({SA, SV, ACC, WH, INST}),
    "building": frozenset({SA, SV}),
    "splitter": frozenset({SA, SV}),
    "material": frozenset({SA, SV, WH, INST}),
    "service_installer": frozenset({SA, SV}),
    "order": frozenset({SA, SV, INST}),
    "invoice": frozenset({SA, ACC, INST}),
    "report": frozenset({SA, SV, ACC}),
    "import": frozenset({SA}),
    "export": frozenset({SA, ACC}),
    "search": frozenset({SA, SV, ACC, WH, INST}),
    "settings": frozenset({SA}),
    "project": frozenset({SA, SV}),
    "task": frozenset({SA, SV, INST}),
}

ACTION_PERMISSIONS: Dict[str, FrozenSet[Role]] = {
    # create
    "create_building": frozenset({SA}),
    "create_splitter": frozenset({SA}),
    "create_material": frozenset({SA, WH}),
    "create_service_installer": frozenset({SA}),
    "create_order": frozenset({SA, SV}),
    "create_invoice": frozenset({SA, ACC}),
    "create_activation": frozenset({SA, SV}),
    "create_assurance": frozenset({SA, SV}),
    "create_user": frozenset({SA}),
    "create_project": frozenset({SA, SV}),
    "create_task": frozenset({SA, SV}),
    # read
    "view_building": frozenset({SA, SV}),
    "view_splitter": frozenset({SA, SV}),
    "view_material": frozenset({SA, SV, WH, INST}),
    "view_service_installer": frozenset({SA, SV}),
    "view_order": frozenset({SA, SV, INST}),
    "view_invoice": frozenset({SA, ACC, INST}),
    "view_report": frozenset({SA, SV, ACC}),
    "view_activation": frozenset({SA, SV, INST}),
    "view_assurance": frozenset({SA, SV, INST}),
    "view_user": frozenset({SA}),
    "view_project": frozenset({SA, SV}),
    "view_task": frozenset({SA, SV, INST}),
    # update
    "edit_building": frozenset({SA, SV}),
    "edit_splitter": frozenset({SA, SV}),
    "edit_material": frozenset({SA, WH}),
    "edit_service_installer": frozenset({SA}),
    "edit_order": frozenset({SA, SV}),
    "edit_invoice": frozenset({SA, ACC}),
    "edit_activation": frozenset({SA, SV}),
    "edit_assurance": frozenset({SA, SV}),
    "edit_user": frozenset({SA}),
    "edit_project": frozenset({SA, SV}),
    "edit_task": frozenset({SA, SV, INST}),
    # delete
    "delete_building": frozenset({SA}),
    "delete_splitter": frozenset({SA}),
    "delete_material": frozenset({SA}),
    "delete_service_installer": frozenset({SA}),
    "delete_order": frozenset({SA}),
    "delete_invoice": frozenset({SA}),
    "delete_activation": frozenset({SA}),
    "delete_assurance": frozenset({SA}),
    "delete_user": frozenset({SA}),
    # special
    "assign_material": frozenset({SA, SV, WH}),
    "assign_job": frozenset({SA, SV}),
    "complete_job": frozenset({SA, SV, INST}),
    "approve_report": frozenset({SA, SV}),
    "generate_report": frozenset({SA, SV, ACC}),
    "import_data": frozenset({SA}),
    "export_data": frozenset({SA, ACC}),
    "change_status": frozenset({SA, SV, INST}),
    "update_stock": frozenset({SA, WH}),
    "system_settings": frozenset({SA}),
    "manage_users": frozenset({SA}),
}

# Permission strings stored on a user profile when none were set explicitly
ROLE_DEFAULT_PERMISSIONS: Dict[Role, List[str]] = {
    SA: ["all", "create_user", "edit_user", "delete_user", "create_building", "edit_building", "delete_building"],
    SV: ["edit_building", "create_activation", "edit_activation", "assign_job"],
    INST: ["complete_job", "update_stock"],
    ACC: ["create_invoice", "edit_invoice", "export_data"],
    WH: ["update_stock", "create_material", "edit_material"],
}

ROLE_NAMES: Dict[Role, str] = {
    SA: "Super Admin",
    SV: "Supervisor",
    ACC: "Accountant",
    WH: "Warehouse Manager",
    INST: "Service Installer",
}


def has_module_access(role, module: Optional[str]) -> bool:
    parsed = Role.parse(role)
    if parsed is None or not module:
        return False
    return parsed in MODULE_PERMISSIONS.get(module, frozenset())


def has_action_permission(role, action: Optional[str]) -> bool:
    parsed = Role.parse(role)
    if parsed is None or not action:
        return False
    return parsed in ACTION_PERMISSIONS.get(action, frozenset())


def is_user_authorized(role, allowed_roles: Optional[Iterable]) -> bool:
    """True only when ``allowed_roles`` is given and contains the role."""
    parsed = Role.parse(role)
    if parsed is None or allowed_roles is None:
        return False
    return any(Role.parse(r) == parsed for r in allowed_roles)


def has_minimum_role(role, required_role) -> bool:
    parsed = Role.parse(role)
    required = Role.parse(required_role)
    if parsed is None or required is None:
        return False
    return ROLE_HIERARCHY[parsed] >= ROLE_HIERARCHY[required]


def get_role_permissions(role) -> List[str]:
    parsed = Role.parse(role)
    if parsed is None:
        return []
    return [action for action, roles in ACTION_PERMISSIONS.items() if parsed in roles]


def get_role_modules(role) -> List[str]:
    parsed = Role.parse(role)
    if parsed is None:
        return []
    return [module for module, roles in MODULE_PERMISSIONS.items() if parsed in roles]


def get_default_permissions(role) -> List[str]:
    parsed = Role.parse(role)
    if parsed is None:
        return []
    return list(ROLE_DEFAULT_PERMISSIONS[parsed])


def get_role_name(role) -> str:
    parsed = Role.parse(role)
    if parsed is None:
        return role or "Unknown Role"
    return ROLE_NAMES[parsed]
