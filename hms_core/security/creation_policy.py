"""
hms_core/security/creation_policy.py

角色创建策略 - 防止通过员工创建接口进行权限提升

提权只能沿层级向下进行，不能平级或向上；GOD Admin / Super Admin 是仅有的例外。
"""
from typing import Optional
import logging

from hms_core.security.context import SYSTEM_HOTEL_ID
from hms_core.security.evaluator import Decision
from hms_core.security.roles import (
    GOD_ADMIN,
    SUPER_ADMIN,
    HOTEL_ADMIN,
    RoleCatalog,
    RoleLevel,
    default_catalog,
)

logger = logging.getLogger(__name__)


class RoleCreationPolicy:
    """
    角色创建/分配/删除策略

    规则（按优先级）：
    1. GOD Admin -> 允许
    2. Super Admin -> 目标不是 GOD Admin 即允许
    3. Hotel Admin -> 目标层级 <= ADMIN 时拒绝，否则允许
    4. 操作者层级 >= MANAGER -> 目标层级 <= MANAGER 时拒绝，否则允许
    5. 默认允许

    未知的目标角色一律拒绝。
    """

    def __init__(self, catalog: Optional[RoleCatalog] = None):
        self._catalog = catalog or default_catalog

    def can_create_role(self, actor_role: Optional[str], target_role: Optional[str]) -> bool:
        return bool(self.check_create_role(actor_role, target_role))

    def check_create_role(self, actor_role: Optional[str], target_role: Optional[str]) -> Decision:
        """判定 actor_role 能否创建 target_role，拒绝时附带原因"""
        target_level = self._catalog.level_of(target_role)
        if target_level is None:
            return Decision.deny(f"Unknown role: {target_role}", required=target_role, current=actor_role)

        if actor_role == GOD_ADMIN:
            return Decision.allow()

        if actor_role == SUPER_ADMIN:
            if target_role != GOD_ADMIN:
                return Decision.allow()
            return self._deny(actor_role, target_role)

        if actor_role == HOTEL_ADMIN:
            if target_level <= RoleLevel.ADMIN:
                return self._deny(actor_role, target_role)
            return Decision.allow()

        actor_level = self._catalog.level_of(actor_role)
        if actor_level is None:
            # 未知操作者视为最低层级
            actor_level = int(RoleLevel.STAFF)
        if actor_level >= RoleLevel.MANAGER and target_level <= RoleLevel.MANAGER:
            return self._deny(actor_role, target_role)

        return Decision.allow()

    def can_assign_role(
        self,
        actor_role: Optional[str],
        current_role: Optional[str],
        new_role: Optional[str],
    ) -> bool:
        """更新用户角色：角色未变化时总是允许，变化时按创建规则判定"""
        if new_role is None or new_role == current_role:
            return True
        return self.can_create_role(actor_role, new_role)

    def check_delete_user(self, actor_role: Optional[str], target_role: Optional[str]) -> Decision:
        """
        删除/停用用户：只能作用于严格更低层级的用户，GOD Admin 除外
        """
        if actor_role == GOD_ADMIN:
            return Decision.allow()

        actor_level = self._catalog.level_of(actor_role)
        target_level = self._catalog.level_of(target_role)
        if actor_level is None or target_level is None or target_level <= actor_level:
            return Decision.deny(
                f"Cannot delete {target_role}. Insufficient permissions.",
                required=target_level,
                current=actor_level,
            )
        return Decision.allow()

    def can_delete_user(self, actor_role: Optional[str], target_role: Optional[str]) -> bool:
        return bool(self.check_delete_user(actor_role, target_role))

    @staticmethod
    def can_manage_tenant(actor_hotel_id: Optional[str], target_hotel_id: Optional[str]) -> bool:
        """租户隔离：系统租户可操作任意酒店，其他人只能操作本酒店"""
        if actor_hotel_id == SYSTEM_HOTEL_ID:
            return True
        return actor_hotel_id is not None and actor_hotel_id == target_hotel_id

    def _deny(self, actor_role: Optional[str], target_role: Optional[str]) -> Decision:
        logger.warning(f"Role creation denied: {actor_role} cannot create {target_role}")
        return Decision.deny(
            f"{actor_role} cannot create {target_role} users",
            required=target_role,
            current=actor_role,
        )


# 全局策略实例
role_creation_policy = RoleCreationPolicy()


def can_create_role(actor_role: Optional[str], target_role: Optional[str]) -> bool:
    """便捷函数：使用默认策略判定"""
    return role_creation_policy.can_create_role(actor_role, target_role)


__all__ = [
    "RoleCreationPolicy",
    "role_creation_policy",
    "can_create_role",
]
