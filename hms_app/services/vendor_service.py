"""
供应商服务
"""
import logging
from typing import Optional
from sqlalchemy.orm import Session

from hms_app.config import settings
from hms_app.models.schemas import VendorCreate
from hms_app.models.tenancy import Hotel, Vendor
from hms_app.services import AccessDenied
from hms_app.services.identifier_store import SqlIdentifierStore
from hms_core.engine.audit import audit_engine
from hms_core.identifiers.generator import IdentifierGenerator
from hms_core.security.context import ActorContext
from hms_core.security.evaluator import PermissionEvaluator, permission_evaluator
from hms_core.security.roles import RoleLevel

logger = logging.getLogger(__name__)


class VendorService:
    """供应商服务 - 仅系统层（Super Admin 及以上）可操作"""

    def __init__(self, db: Session, evaluator: Optional[PermissionEvaluator] = None):
        self.db = db
        self.evaluator = evaluator or permission_evaluator
        self.generator = IdentifierGenerator(
            SqlIdentifierStore(db), max_retries=settings.ID_ALLOCATION_RETRIES
        )

    def get_vendor(self, vendor_id: str) -> Vendor:
        vendor = self.db.query(Vendor).filter(Vendor.vendor_id == vendor_id).first()
        if not vendor:
            raise LookupError(f"Vendor {vendor_id} not found")
        return vendor

    def register_vendor(self, actor: ActorContext, data: VendorCreate) -> Vendor:
        """注册供应商并分配 2 开头的供应商 ID"""
        self._require_super_admin(actor)

        vendor_id = self.generator.allocate_vendor_id()
        vendor = Vendor(vendor_id=vendor_id, name=data.name, email=data.email)
        self.db.add(vendor)
        self.db.commit()
        self.db.refresh(vendor)

        logger.info(f"Vendor {vendor_id} registered by {actor.user_id}")
        audit_engine.log(
            operator_id=actor.user_id,
            action="vendor.create",
            entity_type="vendor",
            entity_id=vendor_id,
        )
        return vendor

    def assign_hotel(self, actor: ActorContext, vendor_id: str, hotel_id: str) -> Hotel:
        """把酒店划归供应商，一家酒店至多属于一个供应商"""
        self._require_super_admin(actor)

        vendor = self.get_vendor(vendor_id)
        hotel = self.db.query(Hotel).filter(Hotel.hotel_id == hotel_id).first()
        if not hotel:
            raise LookupError(f"Hotel {hotel_id} not found")
        if hotel.vendor_id and hotel.vendor_id != vendor.vendor_id:
            raise ValueError(f"Hotel {hotel_id} already belongs to vendor {hotel.vendor_id}")

        hotel.vendor_id = vendor.vendor_id
        self.db.commit()
        self.db.refresh(hotel)
        logger.info(f"Hotel {hotel_id} assigned to vendor {vendor_id} by {actor.user_id}")
        return hotel

    def _require_super_admin(self, actor: ActorContext) -> None:
        decision = self.evaluator.check_level(actor.role, RoleLevel.SUPER_ADMIN, operator_id=actor.user_id)
        if not decision:
            raise AccessDenied.from_decision(decision)
