"""
租户对象定义
酒店、供应商、酒店用户以及酒店状态变更日志
"""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from hms_app.database import Base
from hms_core.engine.lifecycle import HotelStatus


class UserStatus(str, Enum):
    """酒店用户状态"""
    ACTIVE = "active"
    INACTIVE = "inactive"    # 停用（软删除）


class Vendor(Base):
    """供应商对象"""
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(String(10), unique=True, nullable=False, index=True)  # 2xxxxxxxxx
    name = Column(String(200), nullable=False)
    email = Column(String(255))
    created_at = Column(DateTime, default=datetime.utcnow)

    hotels = relationship("Hotel", back_populates="vendor")


class Hotel(Base):
    """
    酒店对象（租户）
    删除为软删除：status = deleted，行保留，hotel_id 永不复用
    """
    __tablename__ = "hotels"

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(String(10), unique=True, nullable=False, index=True)  # 1xxxxxxxxx
    vendor_id = Column(String(10), ForeignKey("vendors.vendor_id"), nullable=True)
    name = Column(String(200), nullable=False)
    address = Column(Text)
    status = Column(String(20), nullable=False, default=HotelStatus.ACTIVE.value)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vendor = relationship("Vendor", back_populates="hotels")
    status_logs = relationship("HotelStatusLog", back_populates="hotel", order_by="HotelStatusLog.id")


class HotelUser(Base):
    """
    酒店用户对象
    permissions 为创建/更新时写入的权限快照（JSON），仅供审计，鉴权不读取
    """
    __tablename__ = "hotel_users"

    id = Column(Integer, primary_key=True, index=True)
    hotel_user_id = Column(String(15), unique=True, nullable=False, index=True)
    hotel_id = Column(String(10), nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(20))
    role = Column(String(50), nullable=False, index=True)
    department = Column(String(50))
    permissions = Column(Text)                     # 权限快照(JSON)
    status = Column(String(20), nullable=False, default=UserStatus.ACTIVE.value)
    created_by = Column(String(15))
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class HotelStatusLog(Base):
    """酒店状态变更日志 - 每次成功的状态转换写入一行"""
    __tablename__ = "hotel_status_logs"

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(String(10), ForeignKey("hotels.hotel_id"), nullable=False, index=True)
    previous_status = Column(String(20), nullable=False)
    new_status = Column(String(20), nullable=False)
    changed_by = Column(String(15), nullable=False)
    reason = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    hotel = relationship("Hotel", back_populates="status_logs")


class IdentifierReservation(Base):
    """
    已签发标识符登记表
    (namespace, identifier) 唯一约束保证并发分配时只有一个调用方能占用候选值
    """
    __tablename__ = "identifier_reservations"
    __table_args__ = (UniqueConstraint("namespace", "identifier", name="uq_identifier_reservation"),)

    id = Column(Integer, primary_key=True, index=True)
    namespace = Column(String(20), nullable=False)
    identifier = Column(String(15), nullable=False)
    hotel_id = Column(String(10))
    role = Column(String(50))
    created_at = Column(DateTime, default=datetime.utcnow)
