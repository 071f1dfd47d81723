"""
测试 HotelService / VendorService - 酒店生命周期与注册
"""
import pytest

from hms_app.models.schemas import HotelCreate, HotelStatusChange, VendorCreate
from hms_app.models.tenancy import Hotel, HotelStatusLog
from hms_app.services import AccessDenied
from hms_app.services.hotel_service import HotelService
from hms_app.services.vendor_service import VendorService
from hms_core.engine.audit import audit_engine

HOTEL_A = "1000000001"
HOTEL_B = "1000000002"


def _change(status: str, reason: str = None) -> HotelStatusChange:
    return HotelStatusChange(status=status, reason=reason)


def _logs(db_session, hotel_id):
    return db_session.query(HotelStatusLog).filter(HotelStatusLog.hotel_id == hotel_id).all()


class TestRegisterHotel:
    def test_sequential_hotel_id(self, db_session, super_admin, hotels):
        """测试酒店 ID 顺序分配"""
        hotel = HotelService(db_session).register_hotel(super_admin, HotelCreate(name="Hillside"))
        assert hotel.hotel_id == "1000000003"
        assert hotel.status == "active"

    def test_requires_permission(self, db_session, front_desk):
        """测试缺少 hotel.create 权限"""
        with pytest.raises(AccessDenied) as exc:
            HotelService(db_session).register_hotel(front_desk, HotelCreate(name="Nope"))
        assert exc.value.required == "hotel.create"

    def test_unknown_vendor(self, db_session, super_admin):
        """测试供应商不存在"""
        with pytest.raises(LookupError):
            HotelService(db_session).register_hotel(
                super_admin, HotelCreate(name="Hillside", vendor_id="2000000009")
            )

    def test_with_vendor(self, db_session, super_admin):
        """测试注册时归属供应商"""
        vendor = VendorService(db_session).register_vendor(super_admin, VendorCreate(name="Acme Group"))
        hotel = HotelService(db_session).register_hotel(
            super_admin, HotelCreate(name="Acme Downtown", vendor_id=vendor.vendor_id)
        )
        assert hotel.vendor_id == "2000000001"


class TestChangeStatus:
    def test_admin_deactivates_own_hotel(self, db_session, hotel_admin):
        """测试 Hotel Admin 停用本酒店并写入状态日志"""
        result = HotelService(db_session).change_status(
            hotel_admin, HOTEL_A, _change("deactivated", reason="renovation")
        )
        assert result.previous_status == "active"
        assert result.new_status == "inactive"
        assert result.message.startswith("Hotel deactivated")

        logs = _logs(db_session, HOTEL_A)
        assert len(logs) == 1
        assert logs[0].previous_status == "active"
        assert logs[0].new_status == "inactive"
        assert logs[0].changed_by == hotel_admin.user_id
        assert logs[0].reason == "renovation"
        assert audit_engine.get_by_entity("hotel", HOTEL_A)

    def test_admin_cannot_delist(self, db_session, hotel_admin):
        """测试 Hotel Admin 不能下架"""
        with pytest.raises(AccessDenied) as exc:
            HotelService(db_session).change_status(hotel_admin, HOTEL_A, _change("delisted"))
        assert exc.value.required == 1
        assert exc.value.current == 2
        assert _logs(db_session, HOTEL_A) == []

    def test_delisted_restore_depends_on_tier(self, db_session, super_admin, hotel_admin):
        """测试下架后只有 Super Admin 及以上可以恢复"""
        service = HotelService(db_session)
        service.change_status(super_admin, HOTEL_A, _change("delisted"))

        with pytest.raises(AccessDenied) as exc:
            service.change_status(hotel_admin, HOTEL_A, _change("active"))
        assert "Cannot restore delisted hotel" in exc.value.message

        result = service.change_status(super_admin, HOTEL_A, _change("active"))
        assert result.new_status == "active"
        assert len(_logs(db_session, HOTEL_A)) == 2

    def test_manager_cannot_deactivate(self, db_session, manager):
        """测试 Manager 不能停用酒店"""
        with pytest.raises(AccessDenied):
            HotelService(db_session).change_status(manager, HOTEL_A, _change("inactive"))

    def test_only_god_deletes(self, db_session, super_admin, god_admin, hotels):
        """测试只有 GOD Admin 可以删除"""
        service = HotelService(db_session)
        with pytest.raises(AccessDenied):
            service.change_status(super_admin, HOTEL_B, _change("deleted"))

        result = service.change_status(god_admin, HOTEL_B, _change("deleted"))
        assert result.new_status == "deleted"
        hotel = db_session.query(Hotel).filter(Hotel.hotel_id == HOTEL_B).first()
        assert hotel is not None
        assert hotel.status == "deleted"

    def test_delisted_noop_writes_no_log(self, db_session, super_admin, hotel_admin):
        """测试 delisted -> delisted 为无操作"""
        service = HotelService(db_session)
        service.change_status(super_admin, HOTEL_A, _change("delisted"))
        result = service.change_status(hotel_admin, HOTEL_A, _change("delisted"))
        assert result.new_status == "delisted"
        assert len(_logs(db_session, HOTEL_A)) == 1

    def test_other_tenant_not_found(self, db_session, hotel_admin):
        """测试不能修改其他酒店"""
        with pytest.raises(LookupError):
            HotelService(db_session).change_status(hotel_admin, HOTEL_B, _change("inactive"))

    def test_invalid_status_rejected_by_schema(self):
        """测试非法状态在 schema 层被拒绝"""
        with pytest.raises(ValueError):
            HotelStatusChange(status="archived")


class TestHardDelete:
    def test_requires_god(self, db_session, super_admin):
        """测试永久删除需要 GOD Admin"""
        with pytest.raises(AccessDenied) as exc:
            HotelService(db_session).hard_delete_hotel(super_admin, HOTEL_A)
        assert exc.value.required == 0

    def test_id_never_reissued(self, db_session, god_admin, hotels):
        """测试永久删除后酒店 ID 不会被重新签发"""
        service = HotelService(db_session)
        service.change_status(god_admin, HOTEL_B, _change("inactive"))
        service.hard_delete_hotel(god_admin, HOTEL_B)

        assert db_session.query(Hotel).filter(Hotel.hotel_id == HOTEL_B).first() is None
        assert _logs(db_session, HOTEL_B) == []
        assert service.generator.next_hotel_id() == "1000000003"


class TestVendorService:
    def test_register_vendor(self, db_session, super_admin):
        """测试注册供应商"""
        service = VendorService(db_session)
        assert service.register_vendor(super_admin, VendorCreate(name="A")).vendor_id == "2000000001"
        assert service.register_vendor(super_admin, VendorCreate(name="B")).vendor_id == "2000000002"

    def test_hotel_admin_denied(self, db_session, hotel_admin):
        """测试 Hotel Admin 不能注册供应商"""
        with pytest.raises(AccessDenied):
            VendorService(db_session).register_vendor(hotel_admin, VendorCreate(name="A"))

    def test_assign_hotel_once(self, db_session, super_admin, hotels):
        """测试一家酒店至多属于一个供应商"""
        service = VendorService(db_session)
        first = service.register_vendor(super_admin, VendorCreate(name="A"))
        second = service.register_vendor(super_admin, VendorCreate(name="B"))

        hotel = service.assign_hotel(super_admin, first.vendor_id, HOTEL_A)
        assert hotel.vendor_id == first.vendor_id
        with pytest.raises(ValueError):
            service.assign_hotel(super_admin, second.vendor_id, HOTEL_A)
