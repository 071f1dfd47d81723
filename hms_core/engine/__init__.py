"""
hms_core/engine - 审计与生命周期

- audit: 审计日志引擎
- lifecycle: 酒店生命周期守卫
"""

from hms_core.engine.audit import (
    AuditSeverity,
    AuditLog,
    AuditEngine,
    audit_engine,
)
from hms_core.engine.lifecycle import (
    HotelStatus,
    TransitionRule,
    TransitionDecision,
    HotelLifecycleGuard,
    hotel_lifecycle_guard,
    can_transition,
)

__all__ = [
    "AuditSeverity",
    "AuditLog",
    "AuditEngine",
    "audit_engine",
    "HotelStatus",
    "TransitionRule",
    "TransitionDecision",
    "HotelLifecycleGuard",
    "hotel_lifecycle_guard",
    "can_transition",
]
