"""
hms_core/security - 角色与权限模块

- permissions: 权限码常量
- roles: 角色目录（层级 + 权限授予）
- context: 操作者上下文
- evaluator: 权限评估器
- creation_policy: 角色创建策略

使用方式:
    >>> from hms_core.security import permission_evaluator, role_creation_policy
    >>> permission_evaluator.has_permission("Front Desk", None, "booking.delete")
    True
    >>> role_creation_policy.can_create_role("Manager", "Manager")
    False
"""

from hms_core.security import permissions
from hms_core.security.roles import (
    RoleLevel,
    Department,
    SystemTier,
    DepartmentTier,
    Role,
    RoleCatalog,
    build_catalog,
    build_default_catalog,
    default_catalog,
)
from hms_core.security.context import (
    SYSTEM_HOTEL_ID,
    ActorContext,
)
from hms_core.security.evaluator import (
    Decision,
    PermissionEvaluator,
    permission_evaluator,
)
from hms_core.security.creation_policy import (
    RoleCreationPolicy,
    role_creation_policy,
    can_create_role,
)

__all__ = [
    "permissions",
    "RoleLevel",
    "Department",
    "SystemTier",
    "DepartmentTier",
    "Role",
    "RoleCatalog",
    "build_catalog",
    "build_default_catalog",
    "default_catalog",
    "SYSTEM_HOTEL_ID",
    "ActorContext",
    "Decision",
    "PermissionEvaluator",
    "permission_evaluator",
    "RoleCreationPolicy",
    "role_creation_policy",
    "can_create_role",
]
