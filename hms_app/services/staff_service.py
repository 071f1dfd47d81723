"""
酒店用户服务
创建/更新/停用酒店用户，并在写入前执行角色创建策略与租户隔离
"""
import json
import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from hms_app.config import settings
from hms_app.models.schemas import PermissionSnapshot, StaffCreate, StaffUpdate
from hms_app.models.tenancy import Hotel, HotelUser, UserStatus
from hms_app.security.auth import get_password_hash
from hms_app.services import AccessDenied
from hms_app.services.identifier_store import SqlIdentifierStore
from hms_core.engine.audit import AuditEngine, audit_engine
from hms_core.identifiers.generator import IdentifierGenerator
from hms_core.security.context import SYSTEM_HOTEL_ID, ActorContext
from hms_core.security.creation_policy import RoleCreationPolicy, role_creation_policy
from hms_core.security.evaluator import PermissionEvaluator, permission_evaluator
from hms_core.security.roles import Department, RoleLevel

logger = logging.getLogger(__name__)


class StaffService:
    """酒店用户服务"""

    def __init__(
        self,
        db: Session,
        policy: Optional[RoleCreationPolicy] = None,
        evaluator: Optional[PermissionEvaluator] = None,
        audit: Optional[AuditEngine] = None,
    ):
        self.db = db
        self.policy = policy or role_creation_policy
        self.evaluator = evaluator or permission_evaluator
        self.audit = audit or audit_engine
        self.generator = IdentifierGenerator(
            SqlIdentifierStore(db), max_retries=settings.ID_ALLOCATION_RETRIES
        )

    # ============== 查询 ==============

    def get_staff(self, actor: ActorContext, hotel_user_id: str) -> HotelUser:
        """获取单个用户，跨租户访问视为不存在"""
        self._require_admin(actor)
        user = self.db.query(HotelUser).filter(HotelUser.hotel_user_id == hotel_user_id).first()
        if not user or not self.policy.can_manage_tenant(actor.hotel_id, user.hotel_id):
            raise LookupError("User not found")
        return user

    def list_staff(self, actor: ActorContext, hotel_id: Optional[str] = None,
                   role: Optional[str] = None, status: Optional[str] = None) -> List[HotelUser]:
        """获取用户列表，非系统操作者只能看到本酒店"""
        self._require_admin(actor)
        target = hotel_id if actor.is_system else actor.hotel_id
        query = self.db.query(HotelUser)
        if target:
            query = query.filter(HotelUser.hotel_id == target)
        if role:
            query = query.filter(HotelUser.role == role)
        if status:
            query = query.filter(HotelUser.status == status)
        return query.order_by(HotelUser.hotel_user_id).all()

    # ============== 创建 ==============

    def create_staff(self, actor: ActorContext, data: StaffCreate) -> HotelUser:
        """
        创建酒店用户

        Raises:
            AccessDenied: 角色创建策略拒绝或跨租户
            LookupError: 目标酒店不存在
            ValueError: 邮箱已存在
        """
        self._require_admin(actor)
        decision = self.policy.check_create_role(actor.role, data.role)
        if not decision:
            raise AccessDenied.from_decision(decision)

        hotel_id = data.hotel_id if (actor.is_system and data.hotel_id) else actor.hotel_id
        if not self.policy.can_manage_tenant(actor.hotel_id, hotel_id):
            raise AccessDenied("Cannot create users for another hotel",
                               required=hotel_id, current=actor.hotel_id)

        if hotel_id != SYSTEM_HOTEL_ID:
            hotel = self.db.query(Hotel).filter(Hotel.hotel_id == hotel_id).first()
            if not hotel:
                raise LookupError(f"Hotel {hotel_id} not found")

        email = data.email
        if self.db.query(HotelUser).filter(HotelUser.email == email).first():
            raise ValueError(f"Email '{email}' already exists")

        department = self._department_for(data.role, data.department)
        hotel_user_id = self.generator.allocate_hotel_user_id(hotel_id, data.role)

        snapshot = self._snapshot(data.role, department, created_by_role=actor.role)
        user = HotelUser(
            hotel_user_id=hotel_user_id,
            hotel_id=hotel_id,
            email=email,
            password_hash=get_password_hash(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            role=data.role,
            department=department,
            permissions=snapshot.model_dump_json(exclude_none=True),
            status=UserStatus.ACTIVE.value,
            created_by=actor.user_id,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User {hotel_user_id} ({data.role}) created by {actor.user_id}")
        self.audit.log(
            operator_id=actor.user_id,
            action="staff.create",
            entity_type="hotel_user",
            entity_id=hotel_user_id,
            new_value=data.role,
        )
        return user

    # ============== 更新 ==============

    def update_staff(self, actor: ActorContext, hotel_user_id: str, data: StaffUpdate) -> HotelUser:
        """
        更新酒店用户

        角色变化时按创建策略判定；经由 status 停用时与 deactivate_staff 同样只能作用于更低层级；
        不能停用自己。
        """
        self._require_admin(actor)
        user = self.get_staff(actor, hotel_user_id)
        update_data = data.model_dump(exclude_unset=True)

        new_role = update_data.get("role")
        if not self.policy.can_assign_role(actor.role, user.role, new_role):
            raise AccessDenied(f"{actor.role} cannot assign {new_role} role",
                               required=new_role, current=actor.role)

        deactivating = (
            update_data.get("status") == UserStatus.INACTIVE.value
            and user.status != UserStatus.INACTIVE.value
        )
        if deactivating:
            if user.hotel_user_id == actor.user_id:
                raise ValueError("Cannot deactivate your own account")
            decision = self.policy.check_delete_user(actor.role, user.role)
            if not decision:
                raise AccessDenied.from_decision(decision)

        new_email = update_data.get("email")
        if new_email and new_email != user.email:
            existing = self.db.query(HotelUser).filter(HotelUser.email == new_email).first()
            if existing:
                raise ValueError(f"Email '{new_email}' already exists")

        previous_role = user.role
        for field in ("email", "first_name", "last_name", "phone", "status"):
            if field in update_data and update_data[field] is not None:
                setattr(user, field, update_data[field])

        if new_role or "department" in update_data:
            role = new_role or user.role
            user.role = role
            user.department = self._department_for(role, update_data.get("department"))
            snapshot = self._snapshot(
                role, user.department,
                created_by_role=self._load_snapshot(user).get("created_by_role"),
                updated_by_role=actor.role,
                previous_role=previous_role if previous_role != role else None,
            )
            user.permissions = snapshot.model_dump_json(exclude_none=True)

        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User {user.hotel_user_id} updated by {actor.user_id}")
        self.audit.log(
            operator_id=actor.user_id,
            action="staff.update",
            entity_type="hotel_user",
            entity_id=user.hotel_user_id,
            old_value=previous_role,
            new_value=user.role,
        )
        return user

    # ============== 停用 ==============

    def deactivate_staff(self, actor: ActorContext, hotel_user_id: str) -> HotelUser:
        """
        停用（软删除）酒店用户
        只能作用于严格更低层级的用户（GOD Admin 除外），不能删除自己
        """
        self._require_admin(actor)
        user = self.get_staff(actor, hotel_user_id)

        if user.hotel_user_id == actor.user_id:
            raise ValueError("Cannot delete your own account")

        decision = self.policy.check_delete_user(actor.role, user.role)
        if not decision:
            raise AccessDenied.from_decision(decision)

        user.status = UserStatus.INACTIVE.value
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User {user.hotel_user_id} deactivated by {actor.user_id}")
        self.audit.log(
            operator_id=actor.user_id,
            action="staff.delete",
            entity_type="hotel_user",
            entity_id=user.hotel_user_id,
            old_value=UserStatus.ACTIVE.value,
            new_value=UserStatus.INACTIVE.value,
        )
        return user

    # ============== 内部方法 ==============

    def _require_admin(self, actor: ActorContext) -> None:
        """员工管理需要 Admin 及以上层级"""
        decision = self.evaluator.check_level(actor.role, RoleLevel.ADMIN, operator_id=actor.user_id)
        if not decision:
            raise AccessDenied.from_decision(decision)

    def _department_for(self, role: str, department: Optional[str]) -> Optional[str]:
        """STAFF 层用户的部门即角色名；非 STAFF 层可选填"""
        if self.evaluator.catalog.level_of(role) == RoleLevel.STAFF:
            return role
        dept = Department.lookup(department)
        return dept.value if dept else None

    def _snapshot(self, role: str, department: Optional[str], **audit_fields) -> PermissionSnapshot:
        level = self.evaluator.catalog.level_of(role)
        return PermissionSnapshot(
            level=RoleLevel(level).name if level is not None else "UNKNOWN",
            role_level=level,
            permissions=sorted(self.evaluator.effective_permissions(role, department)),
            **audit_fields,
        )

    @staticmethod
    def _load_snapshot(user: HotelUser) -> dict:
        if not user.permissions:
            return {}
        try:
            return json.loads(user.permissions)
        except ValueError:
            logger.warning(f"Unreadable permission snapshot on user {user.hotel_user_id}")
            return {}
