"""
数据模型
"""
from hms_app.models.tenancy import (
    Hotel, Vendor, HotelUser, HotelStatusLog, IdentifierReservation, UserStatus
)

__all__ = ["Hotel", "Vendor", "HotelUser", "HotelStatusLog", "IdentifierReservation", "UserStatus"]
