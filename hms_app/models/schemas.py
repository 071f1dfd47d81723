"""
Tenancy Pydantic schemas for request/response validation.
"""
import re
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, ConfigDict

from hms_core.engine.lifecycle import HotelStatus
from hms_core.identifiers.formats import ROLE_CODES

EMAIL_REGEX = r'^[^@\s]+@[^@\s]+\.[^@\s]+$'


def _validate_role(v: Optional[str]) -> Optional[str]:
    if v is not None and v not in ROLE_CODES:
        raise ValueError(f"Invalid role: {v}")
    return v


def _validate_email(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().lower()
    if not re.match(EMAIL_REGEX, v):
        raise ValueError(f"Invalid email: {v}")
    return v


# ============== 酒店用户 Schemas ==============

class StaffCreate(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    role: str
    department: Optional[str] = None
    # 仅系统租户可指定；酒店内操作者始终使用自己的酒店
    hotel_id: Optional[str] = None

    @field_validator('role')
    @classmethod
    def validate_role(cls, v: str) -> str:
        return _validate_role(v)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _validate_email(v)


class StaffUpdate(BaseModel):
    email: Optional[str] = Field(None, max_length=255)
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    role: Optional[str] = None
    department: Optional[str] = None
    status: Optional[str] = None

    @field_validator('role')
    @classmethod
    def validate_role(cls, v: Optional[str]) -> Optional[str]:
        return _validate_role(v)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return _validate_email(v)

    @field_validator('status')
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in ("active", "inactive"):
            raise ValueError("Invalid status. Must be one of: active, inactive")
        return v


class StaffResponse(BaseModel):
    hotel_user_id: str
    hotel_id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: str
    department: Optional[str] = None
    status: str
    created_by: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PermissionSnapshot(BaseModel):
    """写入用户行的权限快照，仅供审计"""
    level: str
    role_level: Optional[int] = None
    permissions: List[str] = []
    created_by_role: Optional[str] = None
    updated_by_role: Optional[str] = None
    previous_role: Optional[str] = None


# ============== 酒店 Schemas ==============

class HotelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = None
    vendor_id: Optional[str] = None


class HotelResponse(BaseModel):
    hotel_id: str
    vendor_id: Optional[str] = None
    name: str
    address: Optional[str] = None
    status: str
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class HotelStatusChange(BaseModel):
    status: str
    reason: Optional[str] = Field(None, max_length=500)

    @field_validator('status')
    @classmethod
    def validate_status(cls, v: str) -> str:
        status = HotelStatus.lookup(v)
        if status is None:
            raise ValueError(
                "Invalid status. Must be one of: active, inactive, delisted, deleted"
            )
        return status.value


class HotelStatusChangeResult(BaseModel):
    hotel_id: str
    previous_status: str
    new_status: str
    message: str


class VendorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return _validate_email(v)


# ============== 认证 Schemas ==============

class TokenClaims(BaseModel):
    """访问令牌载荷"""
    sub: str
    role: str
    hotel_id: str
    department: Optional[str] = None
    email: Optional[str] = None
