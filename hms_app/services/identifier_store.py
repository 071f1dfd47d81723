"""
SQLAlchemy 标识符存储

exists() 同时检查登记表与实体表，已软删除的行仍视为占用。
酒店/供应商 ID 还会匹配实体表中的旧 8 位写法。
reserve() 依赖 identifier_reservations 上的唯一约束，在保存点内插入，
冲突时回滚保存点并返回 False，不影响调用方会话中的其他改动。
"""
from typing import Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hms_app.models.tenancy import Hotel, HotelUser, IdentifierReservation, Vendor
from hms_core.identifiers.formats import legacy_entity_id
from hms_core.identifiers.store import IdentifierNamespace, IdentifierStore

logger = logging.getLogger(__name__)

_ENTITY_COLUMNS = {
    IdentifierNamespace.HOTEL: Hotel.hotel_id,
    IdentifierNamespace.VENDOR: Vendor.vendor_id,
    IdentifierNamespace.HOTEL_USER: HotelUser.hotel_user_id,
}


class SqlIdentifierStore(IdentifierStore):
    """基于数据库会话的标识符存储"""

    def __init__(self, db: Session):
        self.db = db

    def exists(self, namespace: IdentifierNamespace, candidate: str) -> bool:
        reserved = self.db.query(IdentifierReservation.id).filter(
            IdentifierReservation.namespace == namespace.value,
            IdentifierReservation.identifier == candidate,
        ).first()
        if reserved is not None:
            return True
        column = _ENTITY_COLUMNS[namespace]
        forms = [candidate]
        legacy = legacy_entity_id(candidate) if namespace is not IdentifierNamespace.HOTEL_USER else None
        if legacy:
            forms.append(legacy)
        return self.db.query(column).filter(column.in_(forms)).first() is not None

    def count_matching(self, hotel_id: str, role: str) -> int:
        return self.db.query(HotelUser).filter(
            HotelUser.hotel_id == hotel_id,
            HotelUser.role == role,
        ).count()

    def reserve(
        self,
        namespace: IdentifierNamespace,
        candidate: str,
        hotel_id: Optional[str] = None,
        role: Optional[str] = None,
    ) -> bool:
        if self.exists(namespace, candidate):
            return False
        try:
            with self.db.begin_nested():
                self.db.add(IdentifierReservation(
                    namespace=namespace.value,
                    identifier=candidate,
                    hotel_id=hotel_id,
                    role=role,
                ))
        except IntegrityError:
            logger.info(f"Identifier {candidate} ({namespace.value}) reserved concurrently")
            return False
        return True

    def retire(self, namespace: IdentifierNamespace, candidate: str) -> None:
        """实体行被物理删除前调用，把 ID 写入登记表，保证不会被重新签发"""
        reserved = self.db.query(IdentifierReservation.id).filter(
            IdentifierReservation.namespace == namespace.value,
            IdentifierReservation.identifier == candidate,
        ).first()
        if reserved is None:
            self.db.add(IdentifierReservation(namespace=namespace.value, identifier=candidate))
            self.db.flush()
