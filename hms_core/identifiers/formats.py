"""
hms_core/identifiers/formats.py

复合标识符格式 - 纯函数编码/解码，无 I/O

酒店 ID：10 位十进制，从 1000000001 开始顺序分配；首位为实体类型（1=酒店，2=供应商）。
旧格式酒店 ID 为 8 位（类型位 + 7 位），仅需可读。
系统/跨租户保留 ID 为 "0000000000"。

酒店用户 ID 有两种格式：

    LONG   (15 位，权威格式): <10 位酒店 ID><1 位角色位><4 位序号>
           例：100000000131001 = 酒店 1000000001 + Hotel Admin(3) + 1001
    LEGACY (14 位，仅兼容):   <1 位实体类型><8 位酒店编号><1 位角色位><4 位计数>

角色编码 10-13 在两种格式中都只写入个位（Tech Support -> 0, Service Boy -> 1 ...），
因此角色位本身并不唯一对应一个角色。
"""
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union
import logging

from hms_core.errors import ConfigurationError, FormatError, IdentifierExhaustedError
from hms_core.security.context import SYSTEM_HOTEL_ID
from hms_core.security.roles import (
    GOD_ADMIN,
    SUPER_ADMIN,
    HOTEL_ADMIN,
    MANAGER,
    Department,
)

logger = logging.getLogger(__name__)


# 角色编码表（1-13，固定）
ROLE_CODES: Mapping[str, int] = MappingProxyType({
    GOD_ADMIN: 1,
    SUPER_ADMIN: 2,
    HOTEL_ADMIN: 3,
    MANAGER: 4,
    Department.FINANCE.value: 5,
    Department.FRONT_DESK.value: 6,
    Department.BOOKING_AGENT.value: 7,
    Department.GATEKEEPER.value: 8,
    Department.SUPPORT.value: 9,
    Department.TECH_SUPPORT.value: 10,
    Department.SERVICE_BOY.value: 11,
    Department.MAINTENANCE.value: 12,
    Department.KITCHEN.value: 13,
})

UNKNOWN_ROLE = "Unknown"

HOTEL_ID_WIDTH = 10
LEGACY_HOTEL_ID_WIDTH = 8
LEGACY_HOTEL_NUMBER_WIDTH = 8
SEQUENCE_WIDTH = 4
MAX_SEQUENCE = 9999
LONG_USER_ID_WIDTH = 15
LEGACY_USER_ID_WIDTH = 14

HOTEL_ID_START = 1000000001
VENDOR_ID_START = 2000000001


class EntityType(str, Enum):
    """标识符首位表示的实体类型"""
    SYSTEM = "system"
    HOTEL = "hotel"
    VENDOR = "vendor"

    @property
    def prefix(self) -> str:
        return _ENTITY_PREFIXES[self]

    @classmethod
    def from_prefix(cls, digit: str) -> "EntityType":
        for entity, prefix in _ENTITY_PREFIXES.items():
            if prefix == digit:
                return entity
        raise FormatError(f"Unknown entity type digit: {digit!r}")


_ENTITY_PREFIXES = {
    EntityType.SYSTEM: "0",
    EntityType.HOTEL: "1",
    EntityType.VENDOR: "2",
}


class FormatVersion(str, Enum):
    """酒店用户 ID 格式版本"""
    LONG = "long"
    LEGACY = "legacy"

    @property
    def width(self) -> int:
        return LONG_USER_ID_WIDTH if self is FormatVersion.LONG else LEGACY_USER_ID_WIDTH


@dataclass(frozen=True)
class ParsedUserId:
    """
    解析后的酒店用户 ID

    Attributes:
        entity_type: 实体类型
        hotel_number: 去掉类型位（置 0）后的酒店编号，补齐 10 位
        role_digit: 角色位（0-9）
        user_number: 序号/计数
        format_version: 格式版本
    """

    entity_type: EntityType
    hotel_number: str
    role_digit: int
    user_number: int
    format_version: FormatVersion

    @property
    def hotel_id(self) -> str:
        """还原 10 位酒店 ID（旧格式下只保留了酒店编号的低 8 位）"""
        return self.entity_type.prefix + self.hotel_number[1:]

    @property
    def candidate_roles(self) -> Tuple[str, ...]:
        """角色位可能对应的角色名"""
        return roles_for_digit(self.role_digit)


def _is_digits(value: str) -> bool:
    return isinstance(value, str) and value.isascii() and value.isdigit()


def role_code(role: str) -> int:
    """
    角色名 -> 角色编码

    Raises:
        ConfigurationError: 角色不在编码表中（程序错误）
    """
    code = ROLE_CODES.get(role)
    if code is None:
        logger.error(f"Identifier generation called with unknown role: {role!r}")
        raise ConfigurationError(f"Invalid role: {role}")
    return code


def role_digit(code: int) -> int:
    """角色编码 -> 写入标识符的单个角色位"""
    return code % 10


def role_name_from_code(code: Union[int, str, None]) -> str:
    """角色编码 -> 角色名，未知编码返回 "Unknown"（不抛异常，调用方须显式检查）"""
    try:
        value = int(code)
    except (TypeError, ValueError):
        return UNKNOWN_ROLE
    for name, role_value in ROLE_CODES.items():
        if role_value == value:
            return name
    return UNKNOWN_ROLE


def roles_for_digit(digit: int) -> Tuple[str, ...]:
    """角色位 -> 所有可能的角色名（编码 10-13 与 0-3 共用个位）"""
    return tuple(name for name, code in ROLE_CODES.items() if role_digit(code) == digit)


def is_system_hotel(hotel_id: Optional[str]) -> bool:
    return hotel_id == SYSTEM_HOTEL_ID


def normalize_hotel_id(hotel_id: Union[str, int]) -> str:
    """
    规范化酒店 ID 为 10 位

    - 10 位：原样返回（包括系统保留 ID）
    - 8 位且首位为实体类型位：旧格式，展开为 类型位 + 9 位编号
    - 其余不足 10 位的数字：左侧补 0

    Raises:
        FormatError: 非数字或超过 10 位
    """
    value = str(hotel_id).strip()
    if not _is_digits(value) or len(value) > HOTEL_ID_WIDTH:
        raise FormatError(f"Invalid hotel ID: {hotel_id!r}")
    if len(value) == HOTEL_ID_WIDTH:
        return value
    if len(value) == LEGACY_HOTEL_ID_WIDTH and value[0] in (
        EntityType.HOTEL.prefix, EntityType.VENDOR.prefix
    ):
        return value[0] + value[1:].zfill(HOTEL_ID_WIDTH - 1)
    return value.zfill(HOTEL_ID_WIDTH)


def legacy_entity_id(entity_id: str) -> Optional[str]:
    """
    10 位酒店/供应商 ID 对应的旧 8 位写法（normalize_hotel_id 的逆），没有则返回 None

    如 "1000000001" -> "10000001"；"1234567890" 无旧写法。
    """
    value = str(entity_id)
    if (
        len(value) != HOTEL_ID_WIDTH
        or not _is_digits(value)
        or value[0] not in (EntityType.HOTEL.prefix, EntityType.VENDOR.prefix)
        or value[1:HOTEL_ID_WIDTH - LEGACY_HOTEL_ID_WIDTH + 1] != "0" * (HOTEL_ID_WIDTH - LEGACY_HOTEL_ID_WIDTH)
    ):
        return None
    return value[0] + value[HOTEL_ID_WIDTH - LEGACY_HOTEL_ID_WIDTH + 1:]


def is_valid_hotel_id(hotel_id: Union[str, int, None]) -> bool:
    """10 位或旧格式 8 位的数字酒店 ID"""
    if hotel_id is None:
        return False
    value = str(hotel_id).strip()
    return _is_digits(value) and len(value) in (HOTEL_ID_WIDTH, LEGACY_HOTEL_ID_WIDTH)


def format_long_user_id(hotel_id: Union[str, int], role: str, sequence: int) -> str:
    """<10 位酒店 ID><角色位><4 位序号>"""
    if not 1 <= sequence <= MAX_SEQUENCE:
        raise IdentifierExhaustedError(
            f"Sequence {sequence} out of range for hotel {hotel_id} role {role}"
        )
    hotel = normalize_hotel_id(hotel_id)
    digit = role_digit(role_code(role))
    return f"{hotel}{digit}{sequence:0{SEQUENCE_WIDTH}d}"


def format_legacy_user_id(
    hotel_id: Union[str, int],
    role: str,
    running_count: int,
    entity_type: EntityType = EntityType.HOTEL,
) -> str:
    """<实体类型位><8 位酒店编号><角色位><4 位计数>（仅兼容旧服务）"""
    if not 1 <= running_count <= MAX_SEQUENCE:
        raise IdentifierExhaustedError(
            f"Running count {running_count} out of range for hotel {hotel_id} role {role}"
        )
    hotel = normalize_hotel_id(hotel_id)
    number = hotel[1:][-LEGACY_HOTEL_NUMBER_WIDTH:]
    digit = role_digit(role_code(role))
    return f"{entity_type.prefix}{number}{digit}{running_count:0{SEQUENCE_WIDTH}d}"


def detect_format(identifier: str) -> FormatVersion:
    """按长度识别格式版本"""
    if not _is_digits(identifier):
        raise FormatError(f"Invalid user ID format: {identifier!r}")
    for version in FormatVersion:
        if len(identifier) == version.width:
            return version
    raise FormatError(
        f"Invalid user ID format: expected {LONG_USER_ID_WIDTH} or "
        f"{LEGACY_USER_ID_WIDTH} digits, got {len(identifier)}"
    )


def parse_user_id(identifier: str) -> ParsedUserId:
    """
    按固定偏移解析酒店用户 ID

    偏移与 format_long_user_id / format_legacy_user_id 的拼接顺序一致。

    Raises:
        FormatError: 长度不是 15/14、含非数字字符或实体类型位未知
    """
    version = detect_format(identifier)
    entity = EntityType.from_prefix(identifier[0])

    if version is FormatVersion.LONG:
        return ParsedUserId(
            entity_type=entity,
            hotel_number="0" + identifier[1:10],
            role_digit=int(identifier[10]),
            user_number=int(identifier[11:15]),
            format_version=version,
        )

    return ParsedUserId(
        entity_type=entity,
        hotel_number=identifier[1:9].zfill(HOTEL_ID_WIDTH),
        role_digit=int(identifier[9]),
        user_number=int(identifier[10:14]),
        format_version=version,
    )


__all__ = [
    "ROLE_CODES",
    "UNKNOWN_ROLE",
    "HOTEL_ID_START",
    "VENDOR_ID_START",
    "HOTEL_ID_WIDTH",
    "MAX_SEQUENCE",
    "LONG_USER_ID_WIDTH",
    "LEGACY_USER_ID_WIDTH",
    "EntityType",
    "FormatVersion",
    "ParsedUserId",
    "role_code",
    "role_digit",
    "role_name_from_code",
    "roles_for_digit",
    "is_system_hotel",
    "normalize_hotel_id",
    "legacy_entity_id",
    "is_valid_hotel_id",
    "format_long_user_id",
    "format_legacy_user_id",
    "detect_format",
    "parse_user_id",
]
