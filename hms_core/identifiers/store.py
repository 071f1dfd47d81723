"""
hms_core/identifiers/store.py

标识符存储接口

IdentifierGenerator 依赖持久层提供的探测原语。app 层以 SQLAlchemy 实现此接口，
测试使用 InMemoryIdentifierStore。

已签发的标识符永远不会被重新签发：即使对应行被软删除，exists() 仍须返回 True。
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple
import threading

from hms_core.identifiers.formats import legacy_entity_id


class IdentifierNamespace(str, Enum):
    """标识符命名空间"""
    HOTEL = "hotel"
    VENDOR = "vendor"
    HOTEL_USER = "hotel_user"


class IdentifierStore(ABC):
    """标识符存储接口"""

    @abstractmethod
    def exists(self, namespace: IdentifierNamespace, candidate: str) -> bool:
        """候选标识符是否已被占用（包括软删除的行）"""

    @abstractmethod
    def count_matching(self, hotel_id: str, role: str) -> int:
        """某酒店某角色的用户行数（旧格式计数分配使用）"""

    @abstractmethod
    def reserve(
        self,
        namespace: IdentifierNamespace,
        candidate: str,
        hotel_id: Optional[str] = None,
        role: Optional[str] = None,
    ) -> bool:
        """原子占用候选标识符；已被占用时返回 False 而不是抛异常"""


class InMemoryIdentifierStore(IdentifierStore):
    """内存实现 - reserve() 在锁内完成检查与写入"""

    def __init__(self):
        self._lock = threading.Lock()
        self._ids: Dict[IdentifierNamespace, Set[str]] = {ns: set() for ns in IdentifierNamespace}
        self._users: List[Tuple[str, str, str]] = []  # (user_id, hotel_id, role)

    def exists(self, namespace: IdentifierNamespace, candidate: str) -> bool:
        return self._taken(namespace, candidate)

    def count_matching(self, hotel_id: str, role: str) -> int:
        return sum(1 for _, h, r in self._users if h == hotel_id and r == role)

    def reserve(
        self,
        namespace: IdentifierNamespace,
        candidate: str,
        hotel_id: Optional[str] = None,
        role: Optional[str] = None,
    ) -> bool:
        with self._lock:
            if self._taken(namespace, candidate):
                return False
            self._ids[namespace].add(candidate)
            if namespace is IdentifierNamespace.HOTEL_USER:
                self._users.append((candidate, hotel_id, role))
            return True

    def add(
        self,
        namespace: IdentifierNamespace,
        candidate: str,
        hotel_id: Optional[str] = None,
        role: Optional[str] = None,
    ) -> None:
        """直接写入（测试预置数据用），重复写入时静默忽略"""
        self.reserve(namespace, candidate, hotel_id=hotel_id, role=role)

    def issued(self, namespace: IdentifierNamespace) -> Set[str]:
        return set(self._ids[namespace])

    def _taken(self, namespace: IdentifierNamespace, candidate: str) -> bool:
        ids = self._ids[namespace]
        if candidate in ids:
            return True
        if namespace is IdentifierNamespace.HOTEL_USER:
            return False
        legacy = legacy_entity_id(candidate)
        return legacy is not None and legacy in ids


__all__ = [
    "IdentifierNamespace",
    "IdentifierStore",
    "InMemoryIdentifierStore",
]
