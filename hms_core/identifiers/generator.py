"""
hms_core/identifiers/generator.py

标识符生成器 - 酒店、供应商、酒店用户的顺序/确定性复合 ID 分配

next_* 方法只做读探测，没有副作用：两次调用之间若没有插入，返回同一个候选值。
探测是"先查后写"，并发调用方必须串行化，或者改用 allocate_*：
它把探测与存储的原子 reserve() 配对，冲突时重试。
"""
from typing import Callable, Optional, Union
import logging

from hms_core.errors import IdentifierConflictError, IdentifierExhaustedError
from hms_core.identifiers.formats import (
    HOTEL_ID_START,
    VENDOR_ID_START,
    MAX_SEQUENCE,
    EntityType,
    ParsedUserId,
    format_legacy_user_id,
    format_long_user_id,
    normalize_hotel_id,
    parse_user_id,
    role_code,
    role_name_from_code,
)
from hms_core.identifiers.store import IdentifierNamespace, IdentifierStore

logger = logging.getLogger(__name__)

# 每个实体类型占用一个 10 位号段：1xxxxxxxxx 酒店，2xxxxxxxxx 供应商
_RANGE_SIZE = 1_000_000_000


class IdentifierGenerator:
    """
    标识符生成器

    Example:
        >>> store = InMemoryIdentifierStore()
        >>> generator = IdentifierGenerator(store)
        >>> generator.next_hotel_id()
        '1000000001'
        >>> generator.next_hotel_user_id("1000000005", "Hotel Admin")
        '100000000530001'
    """

    def __init__(self, store: IdentifierStore, max_retries: int = 5):
        self._store = store
        self._max_retries = max_retries

    @property
    def store(self) -> IdentifierStore:
        return self._store

    # ============== 读探测（无副作用） ==============

    def next_hotel_id(self) -> str:
        """从 1000000001 开始线性探测第一个未占用的酒店 ID"""
        return self._probe_entity(IdentifierNamespace.HOTEL, HOTEL_ID_START)

    def next_vendor_id(self) -> str:
        """从 2000000001 开始线性探测第一个未占用的供应商 ID"""
        return self._probe_entity(IdentifierNamespace.VENDOR, VENDOR_ID_START)

    def next_hotel_user_id(self, hotel_id: Union[str, int], role: str) -> str:
        """
        长格式酒店用户 ID：<10 位酒店 ID><角色位><最小未用 4 位序号>

        Raises:
            ConfigurationError: 角色不在编码表中
            IdentifierExhaustedError: 该 (酒店, 角色) 的 9999 个序号已用尽
        """
        role_code(role)
        hotel = normalize_hotel_id(hotel_id)
        for sequence in range(1, MAX_SEQUENCE + 1):
            candidate = format_long_user_id(hotel, role, sequence)
            if not self._store.exists(IdentifierNamespace.HOTEL_USER, candidate):
                return candidate
        raise IdentifierExhaustedError(
            f"Hotel {hotel} has no free user sequence left for role {role}"
        )

    def legacy_hotel_user_id(self, hotel_id: Union[str, int], role: str) -> str:
        """
        旧短格式：计数 = COUNT(hotel_id, role) + 1，不回填空缺

        并发下可能重复，仅为兼容旧服务保留，新代码不得使用。
        """
        role_code(role)
        hotel = normalize_hotel_id(hotel_id)
        count = self._store.count_matching(hotel, role)
        return format_legacy_user_id(hotel, role, count + 1, entity_type=EntityType.from_prefix(hotel[0]))

    # ============== 原子分配 ==============

    def allocate_hotel_id(self) -> str:
        return self._allocate(IdentifierNamespace.HOTEL, self.next_hotel_id)

    def allocate_vendor_id(self) -> str:
        return self._allocate(IdentifierNamespace.VENDOR, self.next_vendor_id)

    def allocate_hotel_user_id(self, hotel_id: Union[str, int], role: str) -> str:
        hotel = normalize_hotel_id(hotel_id)
        return self._allocate(
            IdentifierNamespace.HOTEL_USER,
            lambda: self.next_hotel_user_id(hotel, role),
            hotel_id=hotel,
            role=role,
        )

    # ============== 解析 ==============

    @staticmethod
    def parse(identifier: str) -> ParsedUserId:
        return parse_user_id(identifier)

    @staticmethod
    def role_name_from_code(code: Union[int, str, None]) -> str:
        return role_name_from_code(code)

    # ============== 内部方法 ==============

    def _probe_entity(self, namespace: IdentifierNamespace, start: int) -> str:
        limit = (start // _RANGE_SIZE + 1) * _RANGE_SIZE
        candidate = start
        while candidate < limit:
            value = str(candidate)
            if not self._store.exists(namespace, value):
                return value
            candidate += 1
        raise IdentifierExhaustedError(f"No free {namespace.value} ID left")

    def _allocate(
        self,
        namespace: IdentifierNamespace,
        probe: Callable[[], str],
        hotel_id: Optional[str] = None,
        role: Optional[str] = None,
    ) -> str:
        for attempt in range(1, self._max_retries + 1):
            candidate = probe()
            if self._store.reserve(namespace, candidate, hotel_id=hotel_id, role=role):
                logger.info(f"Allocated {namespace.value} ID {candidate}")
                return candidate
            logger.debug(
                f"{namespace.value} ID {candidate} taken concurrently, retrying "
                f"({attempt}/{self._max_retries})"
            )
        raise IdentifierConflictError(
            f"Could not allocate {namespace.value} ID after {self._max_retries} attempts"
        )


__all__ = [
    "IdentifierGenerator",
]
