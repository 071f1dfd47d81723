"""
hms_core/security/context.py

操作者上下文 - 由外部令牌校验器解出的 {role, hotel_id, user_id, department}

核心层从不校验凭证本身，只消费校验结果。
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

# 系统/跨租户管理员使用的保留酒店 ID
SYSTEM_HOTEL_ID = "0000000000"


@dataclass(frozen=True)
class ActorContext:
    """
    操作者上下文

    Attributes:
        role: 角色显示名（如 'Hotel Admin', 'Front Desk'）
        hotel_id: 所属酒店 ID，SYSTEM_HOTEL_ID 表示跨租户
        user_id: 酒店用户 ID
        department: 可选的部门（STAFF 层）
        email: 可选，仅用于日志
    """

    role: str
    hotel_id: str
    user_id: str
    department: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_system(self) -> bool:
        """是否为系统级（跨租户）操作者"""
        return self.hotel_id == SYSTEM_HOTEL_ID

    def belongs_to(self, hotel_id: Optional[str]) -> bool:
        """检查操作者是否属于指定酒店"""
        return hotel_id is not None and self.hotel_id == hotel_id

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "ActorContext":
        """从令牌载荷构建，兼容 camelCase 与 snake_case 字段名"""
        return cls(
            role=claims.get("role"),
            hotel_id=str(claims.get("hotel_id") or claims.get("hotelId") or ""),
            user_id=str(claims.get("user_id") or claims.get("userId") or claims.get("sub") or ""),
            department=claims.get("department"),
            email=claims.get("email"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "hotel_id": self.hotel_id,
            "user_id": self.user_id,
            "department": self.department,
            "email": self.email,
        }

    def __repr__(self) -> str:
        return (
            f"ActorContext(user_id={self.user_id!r}, role={self.role!r}, "
            f"hotel_id={self.hotel_id!r})"
        )


__all__ = [
    "SYSTEM_HOTEL_ID",
    "ActorContext",
]
