"""
hms_core/identifiers - 复合标识符

使用方式:
    >>> from hms_core.identifiers import IdentifierGenerator, InMemoryIdentifierStore
    >>> generator = IdentifierGenerator(InMemoryIdentifierStore())
    >>> generator.parse("100000000530007").user_number
    7
"""

from hms_core.identifiers.formats import (
    ROLE_CODES,
    UNKNOWN_ROLE,
    HOTEL_ID_START,
    VENDOR_ID_START,
    EntityType,
    FormatVersion,
    ParsedUserId,
    role_code,
    role_name_from_code,
    normalize_hotel_id,
    is_valid_hotel_id,
    is_system_hotel,
    parse_user_id,
)
from hms_core.identifiers.store import (
    IdentifierNamespace,
    IdentifierStore,
    InMemoryIdentifierStore,
)
from hms_core.identifiers.generator import IdentifierGenerator

__all__ = [
    "ROLE_CODES",
    "UNKNOWN_ROLE",
    "HOTEL_ID_START",
    "VENDOR_ID_START",
    "EntityType",
    "FormatVersion",
    "ParsedUserId",
    "role_code",
    "role_name_from_code",
    "normalize_hotel_id",
    "is_valid_hotel_id",
    "is_system_hotel",
    "parse_user_id",
    "IdentifierNamespace",
    "IdentifierStore",
    "InMemoryIdentifierStore",
    "IdentifierGenerator",
]
