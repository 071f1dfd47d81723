"""
hms_core/engine/lifecycle.py

酒店生命周期守卫 - 按操作者层级约束酒店状态转换

状态：
    active ⇄ inactive（停用，可恢复）          需要 ADMIN 及以上
    active/inactive → delisted（下架）         需要 SUPER_ADMIN 及以上
    delisted → delisted                        无操作，总是允许
    delisted → 其他状态                        需要 SUPER_ADMIN 及以上
    任意 → deleted                             仅 GOD_ADMIN
    deleted → 其他状态                         仅 GOD_ADMIN

下架的恢复规则取决于当前状态而不只是权限码，因此必须在通用的
"是否拥有权限 X" 检查之前调用 can_transition。
本模块不抛异常，拒绝以 TransitionDecision 返回。
"""
from typing import Dict, Any, Optional, Tuple, Union, FrozenSet
from dataclasses import dataclass
from enum import Enum
import logging

from hms_core.security.roles import RoleLevel

logger = logging.getLogger(__name__)


class HotelStatus(str, Enum):
    """酒店状态"""
    ACTIVE = "active"
    INACTIVE = "inactive"    # 停用（deactivated）
    DELISTED = "delisted"    # 下架
    DELETED = "deleted"      # 删除（软删除）

    @classmethod
    def lookup(cls, value: Optional[Union[str, "HotelStatus"]]) -> Optional["HotelStatus"]:
        """解析状态，兼容 'deactivated' 别名，未知返回 None"""
        if value is None:
            return None
        if isinstance(value, HotelStatus):
            return value
        normalized = str(value).strip().lower()
        if normalized == "deactivated":
            return cls.INACTIVE
        try:
            return cls(normalized)
        except ValueError:
            return None


_ALL = frozenset(HotelStatus)


@dataclass(frozen=True)
class TransitionRule:
    """
    转换规则

    Attributes:
        name: 规则名（出现在拒绝原因中）
        from_states: 适用的源状态
        to_states: 适用的目标状态
        required_level: 需要的最低层级（数值越小越高）；None 表示无需层级
        exact: True 时要求操作者层级恰好等于 required_level
    """

    name: str
    from_states: FrozenSet[HotelStatus]
    to_states: FrozenSet[HotelStatus]
    required_level: Optional[RoleLevel]
    exact: bool = False

    def applies(self, current: HotelStatus, target: HotelStatus) -> bool:
        return current in self.from_states and target in self.to_states

    def permits(self, actor_level: int) -> bool:
        if self.required_level is None:
            return True
        if self.exact:
            return actor_level == self.required_level
        return actor_level <= self.required_level


# 按顺序匹配，第一条适用的规则生效
DEFAULT_RULES: Tuple[TransitionRule, ...] = (
    TransitionRule(
        "delisted_noop",
        frozenset({HotelStatus.DELISTED}), frozenset({HotelStatus.DELISTED}),
        None,
    ),
    TransitionRule(
        "delete",
        _ALL, frozenset({HotelStatus.DELETED}),
        RoleLevel.GOD_ADMIN, exact=True,
    ),
    TransitionRule(
        "restore_deleted",
        frozenset({HotelStatus.DELETED}), _ALL,
        RoleLevel.GOD_ADMIN, exact=True,
    ),
    TransitionRule(
        "modify_delisted",
        frozenset({HotelStatus.DELISTED}), _ALL,
        RoleLevel.SUPER_ADMIN,
    ),
    TransitionRule(
        "delist",
        frozenset({HotelStatus.ACTIVE, HotelStatus.INACTIVE}), frozenset({HotelStatus.DELISTED}),
        RoleLevel.SUPER_ADMIN,
    ),
    TransitionRule(
        "activate_deactivate",
        frozenset({HotelStatus.ACTIVE, HotelStatus.INACTIVE}),
        frozenset({HotelStatus.ACTIVE, HotelStatus.INACTIVE}),
        RoleLevel.ADMIN,
    ),
)


STATUS_MESSAGES: Dict[HotelStatus, str] = {
    HotelStatus.ACTIVE: "Hotel activated successfully",
    HotelStatus.INACTIVE: "Hotel deactivated successfully (can be reversed by Admin+)",
    HotelStatus.DELISTED: "Hotel delisted permanently (only Super Admin+ can modify)",
    HotelStatus.DELETED: "Hotel deleted permanently (only GOD Admin can perform this action)",
}


@dataclass(frozen=True)
class TransitionDecision:
    """
    状态转换判定

    Attributes:
        allowed: 是否允许
        previous_status: 当前状态
        new_status: 目标状态
        rule: 命中的规则名
        reason: 拒绝原因
        required_level: 需要的层级
        current_level: 操作者层级
    """

    allowed: bool
    previous_status: Optional[str]
    new_status: Optional[str]
    rule: Optional[str] = None
    reason: str = ""
    required_level: Optional[int] = None
    current_level: Optional[int] = None

    def __bool__(self) -> bool:
        return self.allowed

    @property
    def required(self) -> Optional[int]:
        return self.required_level

    @property
    def current(self) -> Optional[int]:
        return self.current_level

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allowed": self.allowed,
            "previous_status": self.previous_status,
            "new_status": self.new_status,
            "rule": self.rule,
            "reason": self.reason,
            "required": self.required_level,
            "current": self.current_level,
        }


class HotelLifecycleGuard:
    """
    酒店生命周期守卫 - 纯函数，可并发调用

    Example:
        >>> guard = HotelLifecycleGuard()
        >>> bool(guard.can_transition(RoleLevel.ADMIN, "delisted", "active"))
        False
        >>> bool(guard.can_transition(RoleLevel.SUPER_ADMIN, "delisted", "active"))
        True
    """

    def __init__(self, rules: Tuple[TransitionRule, ...] = DEFAULT_RULES):
        self._rules = tuple(rules)

    @property
    def rules(self) -> Tuple[TransitionRule, ...]:
        return self._rules

    def can_transition(
        self,
        actor_level: Optional[Union[int, RoleLevel]],
        current_status: Union[str, HotelStatus, None],
        target_status: Union[str, HotelStatus, None],
    ) -> TransitionDecision:
        """
        判定操作者能否把酒店从 current_status 转到 target_status

        Args:
            actor_level: 操作者层级（None 表示未知角色）
            current_status: 当前状态
            target_status: 目标状态

        Returns:
            TransitionDecision，拒绝时带 (required_level, current_level)
        """
        current = HotelStatus.lookup(current_status)
        target = HotelStatus.lookup(target_status)
        level = int(actor_level) if actor_level is not None else None

        if current is None or target is None:
            return TransitionDecision(
                allowed=False,
                previous_status=str(current_status) if current_status is not None else None,
                new_status=str(target_status) if target_status is not None else None,
                reason=f"Unknown hotel status transition: {current_status} -> {target_status}",
                current_level=level,
            )

        for rule in self._rules:
            if not rule.applies(current, target):
                continue

            required = int(rule.required_level) if rule.required_level is not None else None
            if rule.required_level is not None and (level is None or not rule.permits(level)):
                reason = self._denial_reason(rule, current, target)
                logger.warning(
                    f"Hotel status transition denied: {current.value} -> {target.value} "
                    f"(rule={rule.name}, required={required}, current={level})"
                )
                return TransitionDecision(
                    allowed=False,
                    previous_status=current.value,
                    new_status=target.value,
                    rule=rule.name,
                    reason=reason,
                    required_level=required,
                    current_level=level,
                )

            return TransitionDecision(
                allowed=True,
                previous_status=current.value,
                new_status=target.value,
                rule=rule.name,
                required_level=required,
                current_level=level,
            )

        # 没有规则覆盖的转换（例如规则表被自定义裁剪过）
        return TransitionDecision(
            allowed=False,
            previous_status=current.value,
            new_status=target.value,
            reason=f"Transition {current.value} -> {target.value} is not permitted",
            current_level=level,
        )

    @staticmethod
    def status_change_record(decision: TransitionDecision) -> Dict[str, Optional[str]]:
        """调用方在提交状态变更前需要持久化的审计记录"""
        return {
            "previous_status": decision.previous_status,
            "new_status": decision.new_status,
        }

    @staticmethod
    def status_message(status: Union[str, HotelStatus]) -> str:
        resolved = HotelStatus.lookup(status)
        return STATUS_MESSAGES.get(resolved, "Hotel status updated") if resolved else "Hotel status updated"

    @staticmethod
    def _denial_reason(rule: TransitionRule, current: HotelStatus, target: HotelStatus) -> str:
        if rule.name == "delete":
            return "Only GOD Admin can permanently delete hotels"
        if rule.name == "restore_deleted":
            return "Only GOD Admin can modify deleted hotels"
        if rule.name == "modify_delisted":
            return (
                "Cannot restore delisted hotel. Only Super Admin or GOD Admin "
                "can modify delisted hotels."
            )
        if rule.name == "delist":
            return "Only Super Admin or GOD Admin can delist hotels permanently"
        return f"Insufficient role level to change hotel status from {current.value} to {target.value}"


# 全局守卫实例
hotel_lifecycle_guard = HotelLifecycleGuard()


def can_transition(
    actor_level: Optional[Union[int, RoleLevel]],
    current_status: Union[str, HotelStatus, None],
    target_status: Union[str, HotelStatus, None],
) -> TransitionDecision:
    """便捷函数：使用默认守卫判定"""
    return hotel_lifecycle_guard.can_transition(actor_level, current_status, target_status)


__all__ = [
    "HotelStatus",
    "TransitionRule",
    "TransitionDecision",
    "HotelLifecycleGuard",
    "DEFAULT_RULES",
    "STATUS_MESSAGES",
    "hotel_lifecycle_guard",
    "can_transition",
]
