"""
hms_core/engine/audit.py

审计记录 - 授权拒绝、员工变更、酒店状态变更

只保存在进程内；持久化的状态历史见 app 层的 hotel_status_logs。
"""
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
import threading
import logging
import uuid

logger = logging.getLogger(__name__)


class AuditSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"     # 授权拒绝、被守卫拦下的状态变更
    CRITICAL = "critical"   # 永久删除


@dataclass(frozen=True)
class AuditLog:
    """
    一条审计记录

    operator_id 为酒店用户 ID；entity_id 为复合标识符（酒店/供应商/用户 ID）。
    old_value / new_value 记录变更前后的角色或状态。
    """

    log_id: str
    timestamp: datetime
    operator_id: Optional[str]
    action: str
    entity_type: Optional[str]
    entity_id: Optional[str]
    old_value: Optional[str]
    new_value: Optional[str]
    severity: AuditSeverity
    extra: Dict[str, Any] = field(default_factory=dict)


class AuditEngine:
    """进程内审计记录，超过 max_logs 时丢弃最早的记录"""

    def __init__(self, max_logs: int = 10000):
        self._logs: List[AuditLog] = []
        self._max_logs = max_logs
        self._lock = threading.Lock()

    def log(
        self,
        operator_id: Optional[str] = None,
        action: str = "",
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        old_value: Optional[str] = None,
        new_value: Optional[str] = None,
        severity: AuditSeverity = AuditSeverity.INFO,
        extra: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        entry = AuditLog(
            log_id=str(uuid.uuid4()),
            timestamp=datetime.now(UTC),
            operator_id=operator_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            old_value=old_value,
            new_value=new_value,
            severity=severity,
            extra=extra or {},
        )

        with self._lock:
            self._logs.append(entry)
            if len(self._logs) > self._max_logs:
                del self._logs[: len(self._logs) - self._max_logs]

        logger.info(f"Audit: {action} by {operator_id} on {entity_type}:{entity_id}")
        return entry

    def get_by_entity(self, entity_type: str, entity_id: str, limit: int = 100) -> List[AuditLog]:
        """某个酒店/用户的记录，按时间先后"""
        return [
            e for e in self._snapshot()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ][:limit]

    def get_by_action(self, action: str, limit: int = 100) -> List[AuditLog]:
        return [e for e in self._snapshot() if e.action == action][:limit]

    def clear(self) -> None:
        with self._lock:
            self._logs.clear()

    def _snapshot(self) -> List[AuditLog]:
        with self._lock:
            return list(self._logs)


# 全局审计实例
audit_engine = AuditEngine()


__all__ = [
    "AuditSeverity",
    "AuditLog",
    "AuditEngine",
    "audit_engine",
]
