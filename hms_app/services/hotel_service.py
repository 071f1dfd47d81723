"""
酒店服务
注册酒店、变更酒店状态、永久删除

状态变更先经过生命周期守卫（依赖当前状态），再检查权限码。
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from hms_app.config import settings
from hms_app.models.schemas import HotelCreate, HotelStatusChange, HotelStatusChangeResult
from hms_app.models.tenancy import Hotel, HotelStatusLog, Vendor
from hms_app.services import AccessDenied
from hms_app.services.identifier_store import SqlIdentifierStore
from hms_core.engine.audit import AuditEngine, AuditSeverity, audit_engine
from hms_core.engine.lifecycle import HotelLifecycleGuard, HotelStatus, hotel_lifecycle_guard
from hms_core.identifiers.generator import IdentifierGenerator
from hms_core.identifiers.store import IdentifierNamespace
from hms_core.security import permissions as P
from hms_core.security.context import ActorContext
from hms_core.security.creation_policy import role_creation_policy
from hms_core.security.evaluator import PermissionEvaluator, permission_evaluator
from hms_core.security.roles import RoleLevel

logger = logging.getLogger(__name__)

# 目标状态 -> 所需权限码
_STATUS_PERMISSIONS = {
    HotelStatus.ACTIVE: P.HOTEL_DEACTIVATE,
    HotelStatus.INACTIVE: P.HOTEL_DEACTIVATE,
    HotelStatus.DELISTED: P.HOTEL_DELIST,
    HotelStatus.DELETED: P.HOTEL_DELETE,
}


class HotelService:
    """酒店服务"""

    def __init__(
        self,
        db: Session,
        guard: Optional[HotelLifecycleGuard] = None,
        evaluator: Optional[PermissionEvaluator] = None,
        audit: Optional[AuditEngine] = None,
    ):
        self.db = db
        self.guard = guard or hotel_lifecycle_guard
        self.evaluator = evaluator or permission_evaluator
        self.audit = audit or audit_engine
        self.store = SqlIdentifierStore(db)
        self.generator = IdentifierGenerator(self.store, max_retries=settings.ID_ALLOCATION_RETRIES)

    def get_hotel(self, actor: ActorContext, hotel_id: str) -> Hotel:
        hotel = self.db.query(Hotel).filter(Hotel.hotel_id == hotel_id).first()
        if not hotel or not role_creation_policy.can_manage_tenant(actor.hotel_id, hotel.hotel_id):
            raise LookupError("Hotel not found")
        return hotel

    def list_hotels(self, actor: ActorContext, status: Optional[str] = None) -> List[Hotel]:
        """系统操作者看到全部酒店，其他人只看到本酒店"""
        query = self.db.query(Hotel)
        if not actor.is_system:
            query = query.filter(Hotel.hotel_id == actor.hotel_id)
        if status:
            query = query.filter(Hotel.status == status)
        return query.order_by(Hotel.hotel_id).all()

    def register_hotel(self, actor: ActorContext, data: HotelCreate) -> Hotel:
        """注册酒店并分配酒店 ID"""
        self._require(actor, P.HOTEL_CREATE)

        if data.vendor_id:
            vendor = self.db.query(Vendor).filter(Vendor.vendor_id == data.vendor_id).first()
            if not vendor:
                raise LookupError(f"Vendor {data.vendor_id} not found")

        hotel_id = self.generator.allocate_hotel_id()
        hotel = Hotel(
            hotel_id=hotel_id,
            vendor_id=data.vendor_id,
            name=data.name,
            address=data.address,
            status=HotelStatus.ACTIVE.value,
        )
        self.db.add(hotel)
        self.db.commit()
        self.db.refresh(hotel)

        logger.info(f"Hotel {hotel_id} registered by {actor.user_id}")
        self.audit.log(
            operator_id=actor.user_id,
            action="hotel.create",
            entity_type="hotel",
            entity_id=hotel_id,
        )
        return hotel

    def change_status(self, actor: ActorContext, hotel_id: str,
                      data: HotelStatusChange) -> HotelStatusChangeResult:
        """
        变更酒店状态

        Raises:
            LookupError: 酒店不存在或不属于操作者租户
            AccessDenied: 生命周期守卫或权限检查拒绝
        """
        hotel = self.get_hotel(actor, hotel_id)
        actor_level = self.evaluator.catalog.level_of(actor.role)

        decision = self.guard.can_transition(actor_level, hotel.status, data.status)
        if not decision:
            self.audit.log(
                operator_id=actor.user_id,
                action="hotel.status.denied",
                entity_type="hotel",
                entity_id=hotel_id,
                old_value=hotel.status,
                new_value=data.status,
                severity=AuditSeverity.WARNING,
                extra={"reason": decision.reason},
            )
            raise AccessDenied.from_decision(decision)

        target = HotelStatus(decision.new_status)
        record = self.guard.status_change_record(decision)
        if record["previous_status"] != record["new_status"]:
            self._require(actor, _STATUS_PERMISSIONS[target])
            self.db.add(HotelStatusLog(
                hotel_id=hotel.hotel_id,
                previous_status=record["previous_status"],
                new_status=record["new_status"],
                changed_by=actor.user_id,
                reason=data.reason,
            ))
            hotel.status = target.value
            self.db.commit()

            logger.info(
                f"Hotel {hotel_id} status {record['previous_status']} -> "
                f"{record['new_status']} by {actor.user_id}"
            )
            self.audit.log(
                operator_id=actor.user_id,
                action="hotel.status",
                entity_type="hotel",
                entity_id=hotel_id,
                old_value=record["previous_status"],
                new_value=record["new_status"],
                extra={"reason": data.reason} if data.reason else None,
            )

        return HotelStatusChangeResult(
            hotel_id=hotel_id,
            previous_status=record["previous_status"],
            new_status=record["new_status"],
            message=self.guard.status_message(target),
        )

    def hard_delete_hotel(self, actor: ActorContext, hotel_id: str) -> None:
        """
        永久删除酒店行（仅 GOD Admin）
        酒店 ID 保留在登记表中，不会被重新签发
        """
        decision = self.evaluator.check_level(actor.role, RoleLevel.GOD_ADMIN, operator_id=actor.user_id)
        if not decision:
            raise AccessDenied.from_decision(decision)

        hotel = self.get_hotel(actor, hotel_id)
        self.store.retire(IdentifierNamespace.HOTEL, hotel.hotel_id)
        self.db.query(HotelStatusLog).filter(HotelStatusLog.hotel_id == hotel.hotel_id).delete()
        self.db.delete(hotel)
        self.db.commit()

        logger.info(f"Hotel {hotel_id} permanently deleted by {actor.user_id}")
        self.audit.log(
            operator_id=actor.user_id,
            action="hotel.delete",
            entity_type="hotel",
            entity_id=hotel_id,
            severity=AuditSeverity.CRITICAL,
        )

    def _require(self, actor: ActorContext, permission: str) -> None:
        decision = self.evaluator.check(actor.role, actor.department, permission, operator_id=actor.user_id)
        if not decision:
            raise AccessDenied.from_decision(decision)
