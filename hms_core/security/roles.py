"""
hms_core/security/roles.py

角色目录 (RoleCatalog) - 角色层级与权限授予的静态表

角色是不可变的，在进程启动时构建一次，不会在运行时创建。
五个层级：GOD_ADMIN(0) > SUPER_ADMIN(1) > ADMIN(2) > MANAGER(3) > STAFF(4)，
数字越小权限越高。STAFF 层的角色总是带有部门标签，部门在基础权限上叠加额外权限。

角色建模为标签联合：
    Role = SystemTier(level) | DepartmentTier(department)
这样 STAFF 层角色与部门的对应关系是显式的，而不是依赖角色名与部门名恰好相同。
"""
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Tuple, Union
import logging

from hms_core.security import permissions as P

logger = logging.getLogger(__name__)


class RoleLevel(IntEnum):
    """角色层级（0 = 最高权限）"""
    GOD_ADMIN = 0    # 全部权限，包括永久删除
    SUPER_ADMIN = 1  # 除删除外全部权限，可下架酒店
    ADMIN = 2        # 除下架/删除外全部权限，可停用酒店
    MANAGER = 3      # 酒店运营
    STAFF = 4        # 按部门限定


class Department(str, Enum):
    """STAFF 层部门"""
    FINANCE = "Finance Department"
    FRONT_DESK = "Front Desk"
    BOOKING_AGENT = "Booking Agent"
    GATEKEEPER = "Gatekeeper"
    SUPPORT = "Support"
    TECH_SUPPORT = "Tech Support"
    SERVICE_BOY = "Service Boy"
    MAINTENANCE = "Maintenance"
    KITCHEN = "Kitchen"

    @classmethod
    def lookup(cls, value: Optional[Union[str, "Department"]]) -> Optional["Department"]:
        """按显示名查找部门，找不到返回 None（不抛异常）"""
        if value is None:
            return None
        if isinstance(value, Department):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


# 系统层角色显示名
GOD_ADMIN = "GOD Admin"
SUPER_ADMIN = "Super Admin"
HOTEL_ADMIN = "Hotel Admin"
MANAGER = "Manager"


@dataclass(frozen=True)
class SystemTier:
    """非部门角色：GOD Admin / Super Admin / Hotel Admin / Manager"""
    name: str
    level: RoleLevel

    @property
    def department(self) -> None:
        return None


@dataclass(frozen=True)
class DepartmentTier:
    """STAFF 层角色，总是带部门标签"""
    department: Department

    @property
    def name(self) -> str:
        return self.department.value

    @property
    def level(self) -> RoleLevel:
        return RoleLevel.STAFF


Role = Union[SystemTier, DepartmentTier]


SYSTEM_ROLES: Tuple[SystemTier, ...] = (
    SystemTier(GOD_ADMIN, RoleLevel.GOD_ADMIN),
    SystemTier(SUPER_ADMIN, RoleLevel.SUPER_ADMIN),
    SystemTier(HOTEL_ADMIN, RoleLevel.ADMIN),
    SystemTier(MANAGER, RoleLevel.MANAGER),
)

DEPARTMENT_ROLES: Tuple[DepartmentTier, ...] = tuple(DepartmentTier(d) for d in Department)


# ============== 默认权限表 ==============

_SUPER_ADMIN_PERMISSIONS = (
    # 除永久删除外的全部权限
    P.HOTEL_CREATE, P.HOTEL_READ, P.HOTEL_UPDATE,
    P.HOTEL_DELIST, P.HOTEL_DEACTIVATE,
    P.STAFF_CREATE, P.STAFF_READ, P.STAFF_UPDATE, P.STAFF_DELETE,
    P.BOOKING_CREATE, P.BOOKING_READ, P.BOOKING_UPDATE, P.BOOKING_DELETE,
    P.REPORTS_FULL,
    P.SYSTEM_CONFIG, P.SYSTEM_LOGS,
)

_ADMIN_PERMISSIONS = (
    # 不能下架、不能删除，只能停用
    P.HOTEL_CREATE, P.HOTEL_READ, P.HOTEL_UPDATE, P.HOTEL_DEACTIVATE,
    P.STAFF_CREATE, P.STAFF_READ, P.STAFF_UPDATE, P.STAFF_DELETE,
    P.BOOKING_CREATE, P.BOOKING_READ, P.BOOKING_UPDATE, P.BOOKING_DELETE,
    P.REPORTS_FULL,
)

_MANAGER_PERMISSIONS = (
    P.HOTEL_READ, P.HOTEL_UPDATE,
    P.STAFF_READ, P.STAFF_UPDATE,
    P.BOOKING_CREATE, P.BOOKING_READ, P.BOOKING_UPDATE,
    P.REPORTS_OPERATIONAL, P.REPORTS_FINANCIAL,
)

_STAFF_PERMISSIONS = (
    P.HOTEL_READ,
    P.BOOKING_READ,
)

_DEPARTMENT_EXTRAS: Dict[Department, Tuple[str, ...]] = {
    Department.FINANCE: (P.REPORTS_FINANCIAL, P.BOOKING_READ, P.BOOKING_UPDATE),
    Department.FRONT_DESK: (P.BOOKING_CREATE, P.BOOKING_READ, P.BOOKING_UPDATE, P.BOOKING_DELETE),
    Department.BOOKING_AGENT: (P.BOOKING_CREATE, P.BOOKING_READ, P.BOOKING_UPDATE),
    Department.SUPPORT: (P.BOOKING_READ,),
    Department.TECH_SUPPORT: (P.SYSTEM_LOGS,),
    Department.MAINTENANCE: (P.HOTEL_READ,),
    Department.KITCHEN: (P.BOOKING_READ,),
    Department.SERVICE_BOY: (P.BOOKING_READ,),
    Department.GATEKEEPER: (P.BOOKING_READ,),
}


@dataclass(frozen=True)
class RoleCatalog:
    """
    角色目录 - 纯数据 + 查询函数，无 I/O，不抛异常

    未知角色名返回 None / 空集合，调用方须视为拒绝。

    Attributes:
        roles: 显示名 -> 角色
        tier_permissions: 层级 -> 权限集合
        department_permissions: 部门 -> 权限集合（已包含 STAFF 基础权限）

    Example:
        >>> catalog = build_default_catalog()
        >>> catalog.level_of("Hotel Admin")
        2
        >>> "reports.financial" in catalog.permissions_of("Finance Department")
        True
    """

    roles: Mapping[str, Role]
    tier_permissions: Mapping[RoleLevel, FrozenSet[str]]
    department_permissions: Mapping[Department, FrozenSet[str]] = field(default_factory=dict)

    def role(self, role_name: Optional[str]) -> Optional[Role]:
        """按显示名查找角色"""
        if role_name is None:
            return None
        return self.roles.get(role_name)

    def level_of(self, role_name: Optional[str]) -> Optional[int]:
        """获取角色层级，未知角色返回 None"""
        role = self.role(role_name)
        return int(role.level) if role is not None else None

    def role_names(self) -> Tuple[str, ...]:
        return tuple(self.roles.keys())

    def staff_baseline(self) -> FrozenSet[str]:
        """STAFF 层基础权限"""
        return self.tier_permissions.get(RoleLevel.STAFF, frozenset())

    def all_permissions(self) -> FrozenSet[str]:
        """目录中出现过的全部权限码"""
        result: FrozenSet[str] = frozenset()
        for perms in self.tier_permissions.values():
            result |= perms
        for perms in self.department_permissions.values():
            result |= perms
        return result

    def permissions_of(
        self,
        role_name: Optional[str],
        department: Optional[Union[str, Department]] = None,
    ) -> FrozenSet[str]:
        """
        获取角色的权限集合

        Args:
            role_name: 角色显示名
            department: 可选的部门，仅对 STAFF 层角色生效

        Returns:
            权限集合；未知角色返回空集合
        """
        role = self.role(role_name)
        if role is None:
            return frozenset()

        if role.level < RoleLevel.STAFF:
            return self.tier_permissions.get(role.level, frozenset())

        dept = Department.lookup(department) or role.department
        if dept is not None and dept in self.department_permissions:
            return self.department_permissions[dept]
        return self.staff_baseline()


def build_catalog(
    tier_grants: Mapping[RoleLevel, Iterable[str]],
    department_extras: Mapping[Department, Iterable[str]],
    all_permissions: Iterable[str] = P.ALL_PERMISSIONS,
) -> RoleCatalog:
    """
    构建不可变的角色目录

    GOD_ADMIN 的权限集合不手工维护，而是取全部权限码的并集。
    部门权限 = STAFF 基础权限 ∪ 部门额外权限。
    """
    tiers: Dict[RoleLevel, FrozenSet[str]] = {
        RoleLevel.GOD_ADMIN: frozenset(all_permissions),
    }
    for level, grants in tier_grants.items():
        if level == RoleLevel.GOD_ADMIN:
            continue
        tiers[level] = frozenset(grants)

    baseline = tiers.get(RoleLevel.STAFF, frozenset())
    departments = {
        dept: baseline | frozenset(extras)
        for dept, extras in department_extras.items()
    }

    roles: Dict[str, Role] = {r.name: r for r in SYSTEM_ROLES}
    roles.update({r.name: r for r in DEPARTMENT_ROLES})

    catalog = RoleCatalog(
        roles=MappingProxyType(roles),
        tier_permissions=MappingProxyType(tiers),
        department_permissions=MappingProxyType(departments),
    )
    logger.debug(
        f"RoleCatalog built: {len(roles)} roles, "
        f"{len(tiers[RoleLevel.GOD_ADMIN])} permission tokens"
    )
    return catalog


def build_default_catalog() -> RoleCatalog:
    """按内置权限表构建默认目录"""
    return build_catalog(
        tier_grants={
            RoleLevel.SUPER_ADMIN: _SUPER_ADMIN_PERMISSIONS,
            RoleLevel.ADMIN: _ADMIN_PERMISSIONS,
            RoleLevel.MANAGER: _MANAGER_PERMISSIONS,
            RoleLevel.STAFF: _STAFF_PERMISSIONS,
        },
        department_extras=_DEPARTMENT_EXTRAS,
    )


# 全局默认目录实例
default_catalog = build_default_catalog()


__all__ = [
    "RoleLevel",
    "Department",
    "GOD_ADMIN",
    "SUPER_ADMIN",
    "HOTEL_ADMIN",
    "MANAGER",
    "SystemTier",
    "DepartmentTier",
    "Role",
    "SYSTEM_ROLES",
    "DEPARTMENT_ROLES",
    "RoleCatalog",
    "build_catalog",
    "build_default_catalog",
    "default_catalog",
]
