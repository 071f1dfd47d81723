"""
认证与授权依赖测试 - get_actor / require_permission / require_role_level
"""
import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from jose import jwt

from hms_app.config import settings
from hms_app.database import get_db
from hms_app.models.schemas import StaffCreate
from hms_app.models.tenancy import HotelUser
from hms_app.security.auth import (
    authenticate,
    create_access_token,
    get_actor,
    http_exception_for,
    require_permission,
    require_role_level,
    verify_password,
)
from hms_app.services.staff_service import StaffService
from hms_core.engine.audit import audit_engine
from hms_core.security import permissions as P
from hms_core.security.context import ActorContext
from hms_core.security.roles import RoleLevel


def _build_app() -> FastAPI:
    app = FastAPI()

    @app.get("/me")
    async def me(actor: ActorContext = Depends(get_actor)):
        return actor.to_dict()

    @app.get("/bookings")
    async def bookings(actor: ActorContext = Depends(require_permission(P.BOOKING_DELETE))):
        return {"ok": True}

    @app.get("/admin")
    async def admin(actor: ActorContext = Depends(require_role_level(RoleLevel.ADMIN))):
        return {"ok": True}

    @app.post("/staff")
    def create_staff(data: StaffCreate, actor: ActorContext = Depends(get_actor),
                     db=Depends(get_db)):
        try:
            user = StaffService(db).create_staff(actor, data)
        except (PermissionError, LookupError, ValueError) as e:
            raise http_exception_for(e)
        return {"hotel_user_id": user.hotel_user_id}

    return app


@pytest.fixture
def client(db_session):
    """创建测试客户端"""
    app = _build_app()

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _token(db_session, actor: ActorContext, **kwargs) -> str:
    user = db_session.query(HotelUser).filter(HotelUser.hotel_user_id == actor.user_id).first()
    return create_access_token(user, **kwargs)


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestGetActor:
    def test_missing_token(self, client):
        """测试未携带令牌返回 401"""
        assert client.get("/me").status_code == 401

    def test_invalid_token(self, client):
        """测试无效令牌返回 401"""
        response = client.get("/me", headers=_auth("not-a-token"))
        assert response.status_code == 401

    def test_expired_token(self, client, db_session, manager):
        """测试过期令牌返回 401"""
        token = _token(db_session, manager, expires_hours=-1)
        assert client.get("/me", headers=_auth(token)).status_code == 401

    def test_actor_from_user_row(self, client, db_session, front_desk):
        """测试操作者上下文从用户行构建"""
        response = client.get("/me", headers=_auth(_token(db_session, front_desk)))
        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == front_desk.user_id
        assert data["role"] == "Front Desk"
        assert data["department"] == "Front Desk"
        assert data["hotel_id"] == "1000000001"

    def test_inactive_user(self, client, db_session, make_user, hotels):
        """测试已停用用户返回 401"""
        actor = make_user("100000000140009", "Manager", status="inactive")
        response = client.get("/me", headers=_auth(_token(db_session, actor)))
        assert response.status_code == 401

    def test_unknown_user(self, client):
        """测试令牌中的用户不存在"""
        token = jwt.encode({"sub": "100000000149999", "role": "GOD Admin"},
                           settings.SECRET_KEY, algorithm=settings.ALGORITHM)
        assert client.get("/me", headers=_auth(token)).status_code == 401

    def test_token_role_is_not_trusted(self, client, db_session, front_desk):
        """测试令牌中伪造的角色不生效"""
        token = jwt.encode({"sub": front_desk.user_id, "role": "GOD Admin", "hotel_id": "0000000000"},
                           settings.SECRET_KEY, algorithm=settings.ALGORITHM)
        data = client.get("/me", headers=_auth(token)).json()
        assert data["role"] == "Front Desk"
        assert client.get("/admin", headers=_auth(token)).status_code == 403


class TestRequirePermission:
    def test_allowed(self, client, db_session, front_desk):
        """测试前台拥有 booking.delete"""
        response = client.get("/bookings", headers=_auth(_token(db_session, front_desk)))
        assert response.status_code == 200

    def test_denied_body(self, client, db_session, make_user, hotels):
        """测试 403 响应带 required/current"""
        kitchen = make_user("100000000130009", "Kitchen", department="Kitchen")
        response = client.get("/bookings", headers=_auth(_token(db_session, kitchen)))
        assert response.status_code == 403
        detail = response.json()["detail"]
        assert detail["required"] == P.BOOKING_DELETE
        assert detail["current"] == "Kitchen"
        assert audit_engine.get_by_action("permission.denied")


class TestRequireRoleLevel:
    def test_admin_allowed(self, client, db_session, hotel_admin):
        """测试 Hotel Admin 满足 ADMIN 层级"""
        assert client.get("/admin", headers=_auth(_token(db_session, hotel_admin))).status_code == 200

    def test_manager_denied(self, client, db_session, manager):
        """测试 Manager 不满足 ADMIN 层级"""
        response = client.get("/admin", headers=_auth(_token(db_session, manager)))
        assert response.status_code == 403
        assert response.json()["detail"] == {
            "message": "Insufficient role level",
            "required": 2,
            "current": 3,
        }


class TestServiceErrorMapping:
    def _payload(self, role: str, email: str) -> dict:
        return {
            "email": email,
            "password": "password123",
            "first_name": "Sam",
            "last_name": "Lee",
            "role": role,
        }

    def test_created(self, client, db_session, hotel_admin):
        """测试创建成功"""
        response = client.post("/staff", json=self._payload("Manager", "new@example.com"),
                               headers=_auth(_token(db_session, hotel_admin)))
        assert response.status_code == 200
        assert response.json()["hotel_user_id"] == "100000000140001"

    def test_forbidden(self, client, db_session, hotel_admin):
        """测试策略拒绝映射为 403"""
        response = client.post("/staff", json=self._payload("Hotel Admin", "x@example.com"),
                               headers=_auth(_token(db_session, hotel_admin)))
        assert response.status_code == 403
        assert response.json()["detail"]["required"] == "Hotel Admin"

    def test_below_admin_forbidden(self, client, db_session, manager):
        """测试 Admin 以下层级不能管理员工"""
        response = client.post("/staff", json=self._payload("Kitchen", "k@example.com"),
                               headers=_auth(_token(db_session, manager)))
        assert response.status_code == 403
        assert response.json()["detail"] == {
            "message": "Insufficient role level", "required": 2, "current": 3,
        }

    def test_duplicate_email(self, client, db_session, hotel_admin):
        """测试邮箱重复映射为 400"""
        response = client.post("/staff", json=self._payload("Manager", hotel_admin.email),
                               headers=_auth(_token(db_session, hotel_admin)))
        assert response.status_code == 400

    def test_invalid_role_is_validation_error(self, client, db_session, hotel_admin):
        """测试未知角色在请求校验阶段被拒绝"""
        response = client.post("/staff", json=self._payload("Janitor", "j@example.com"),
                               headers=_auth(_token(db_session, hotel_admin)))
        assert response.status_code == 422


class TestAuthenticate:
    def test_login(self, db_session, manager):
        """测试登录成功返回令牌并更新 last_login"""
        token = authenticate(db_session, manager.email, "password123")
        assert token
        user = db_session.query(HotelUser).filter(HotelUser.hotel_user_id == manager.user_id).first()
        assert user.last_login is not None
        assert verify_password("password123", user.password_hash)

    def test_wrong_password(self, db_session, manager):
        """测试密码错误"""
        assert authenticate(db_session, manager.email, "wrong-password") is None

    def test_inactive_user(self, db_session, make_user, hotels):
        """测试停用用户不能登录"""
        actor = make_user("100000000140008", "Manager", status="inactive")
        assert authenticate(db_session, actor.email, "password123") is None
