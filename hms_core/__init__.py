"""
hms_core - 多租户酒店管理的角色/权限与标识符核心

独立于 I/O 的纯领域逻辑：
- security: 角色目录、权限评估器、角色创建策略
- engine: 酒店生命周期守卫、审计日志
- identifiers: 复合标识符格式与生成器
- errors: 异常分类

使用方式:
    >>> from hms_core.security import permission_evaluator
    >>> from hms_core.engine import hotel_lifecycle_guard
    >>> from hms_core.identifiers import IdentifierGenerator
"""

# security 必须先于 engine 导入
from hms_core.security import (
    RoleLevel,
    Department,
    RoleCatalog,
    ActorContext,
    Decision,
    PermissionEvaluator,
    RoleCreationPolicy,
)
from hms_core.engine import (
    HotelStatus,
    HotelLifecycleGuard,
    TransitionDecision,
    AuditEngine,
)
from hms_core.identifiers import (
    IdentifierGenerator,
    IdentifierStore,
    FormatVersion,
)
from hms_core.errors import (
    HMSError,
    ConfigurationError,
    FormatError,
    IdentifierExhaustedError,
    IdentifierConflictError,
)

__version__ = "0.1.0"

__all__ = [
    "RoleLevel",
    "Department",
    "RoleCatalog",
    "ActorContext",
    "Decision",
    "PermissionEvaluator",
    "RoleCreationPolicy",
    "HotelStatus",
    "HotelLifecycleGuard",
    "TransitionDecision",
    "AuditEngine",
    "IdentifierGenerator",
    "IdentifierStore",
    "FormatVersion",
    "HMSError",
    "ConfigurationError",
    "FormatError",
    "IdentifierExhaustedError",
    "IdentifierConflictError",
]
