"""
hms_core/security/evaluator.py

权限评估器 - 根据角色（及可选部门）解析有效权限集并回答"角色 X 是否拥有权限 P"

评估总是基于 RoleCatalog + 部门实时推导，从不读取用户行上缓存的权限快照。
"""
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional, Union
import logging

from hms_core.security.roles import Department, RoleCatalog, RoleLevel, default_catalog
from hms_core.engine.audit import AuditEngine, AuditSeverity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decision:
    """
    授权判定结果 - 拒绝以返回值而非异常表达

    Attributes:
        allowed: 是否允许
        reason: 拒绝原因（允许时为空）
        required: 需要的权限码或层级
        current: 操作者当前的角色或层级
    """

    allowed: bool
    reason: str = ""
    required: Optional[Union[str, int]] = None
    current: Optional[Union[str, int]] = None

    def __bool__(self) -> bool:
        return self.allowed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allowed": self.allowed,
            "reason": self.reason,
            "required": self.required,
            "current": self.current,
        }

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str, required=None, current=None) -> "Decision":
        return cls(allowed=False, reason=reason, required=required, current=current)


class PermissionEvaluator:
    """
    权限评估器

    规则：
    - 层级 <= MANAGER 的角色使用层级权限集
    - 其他（STAFF 层或未知角色）：部门查找成功时使用部门叠加权限，
      否则回落到 STAFF 基础权限（失败开放，保留原有行为）

    Example:
        >>> evaluator = PermissionEvaluator()
        >>> evaluator.has_permission("Super Admin", None, "hotel.delist")
        True
        >>> evaluator.has_permission("Hotel Admin", None, "hotel.delist")
        False
    """

    def __init__(
        self,
        catalog: Optional[RoleCatalog] = None,
        audit: Optional[AuditEngine] = None,
    ):
        self._catalog = catalog or default_catalog
        self._audit = audit

    @property
    def catalog(self) -> RoleCatalog:
        return self._catalog

    def set_audit_engine(self, engine: Optional[AuditEngine]) -> None:
        """设置审计引擎（拒绝事件会被记录）"""
        self._audit = engine

    def effective_permissions(
        self,
        role: Optional[str],
        department: Optional[Union[str, Department]] = None,
    ) -> FrozenSet[str]:
        """
        解析有效权限集

        Args:
            role: 角色显示名
            department: 可选部门；未提供时以角色名本身作为部门查找

        Returns:
            权限集合，从不为"无权限"：未知部门回落到 STAFF 基础权限
        """
        level = self._catalog.level_of(role)
        if level is not None and level <= RoleLevel.MANAGER:
            return self._catalog.permissions_of(role)

        dept = Department.lookup(department) or Department.lookup(role)
        if dept is not None:
            perms = self._catalog.department_permissions.get(dept)
            if perms is not None:
                return perms

        if department is not None or level is None:
            logger.debug(
                f"No department overlay for role={role!r} department={department!r}, "
                f"using STAFF baseline"
            )
        return self._catalog.staff_baseline()

    def has_permission(
        self,
        role: Optional[str],
        department: Optional[Union[str, Department]],
        permission: str,
    ) -> bool:
        """成员检查"""
        return permission in self.effective_permissions(role, department)

    def check(
        self,
        role: Optional[str],
        department: Optional[Union[str, Department]],
        permission: str,
        operator_id: Optional[str] = None,
    ) -> Decision:
        """
        检查权限并返回带 required/current 的判定结果

        拒绝时记录 WARNING 日志，并在设置了审计引擎时写入审计日志。
        """
        if self.has_permission(role, department, permission):
            return Decision.allow()

        logger.warning(
            f"Permission denied: user {operator_id} ({role}) attempted {permission}"
        )
        if self._audit is not None:
            self._audit.log(
                operator_id=operator_id,
                action="permission.denied",
                entity_type=permission.split(".", 1)[0],
                severity=AuditSeverity.WARNING,
                extra={"permission": permission, "role": role, "department": department},
            )
        return Decision.deny("Insufficient permissions", required=permission, current=role)

    def check_level(
        self,
        role: Optional[str],
        minimum_level: Union[int, RoleLevel],
        operator_id: Optional[str] = None,
    ) -> Decision:
        """检查角色层级是否达到要求（数值越小越高）"""
        level = self._catalog.level_of(role)
        if level is not None and level <= int(minimum_level):
            return Decision.allow()

        logger.warning(
            f"Role level denied: user {operator_id} ({role}, level {level}) "
            f"needs minimum level {int(minimum_level)}"
        )
        return Decision.deny(
            "Insufficient role level", required=int(minimum_level), current=level
        )


# 全局评估器实例
permission_evaluator = PermissionEvaluator()


__all__ = [
    "Decision",
    "PermissionEvaluator",
    "permission_evaluator",
]
