"""
Pytest 配置和共享 fixtures
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hms_app.database import Base
from hms_app.models import tenancy  # noqa
from hms_app.models.tenancy import Hotel, HotelUser, UserStatus
from hms_app.security.auth import get_password_hash
from hms_core.engine.audit import audit_engine
from hms_core.engine.lifecycle import HotelStatus
from hms_core.security.context import ActorContext, SYSTEM_HOTEL_ID

HOTEL_A = "1000000001"
HOTEL_B = "1000000002"


@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """创建数据库会话"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def clean_audit():
    """每个测试前后清空全局审计引擎"""
    audit_engine.clear()
    yield
    audit_engine.clear()


# ============== 租户数据 Fixtures ==============

@pytest.fixture
def hotels(db_session):
    """两家活跃酒店"""
    rows = [
        Hotel(hotel_id=HOTEL_A, name="Harbour View", status=HotelStatus.ACTIVE.value),
        Hotel(hotel_id=HOTEL_B, name="Lakeside Inn", status=HotelStatus.ACTIVE.value),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


@pytest.fixture
def make_user(db_session):
    """直接写入酒店用户行并返回对应的操作者上下文"""
    def _make(hotel_user_id: str, role: str, hotel_id: str = HOTEL_A,
              department: str = None, email: str = None,
              status: str = UserStatus.ACTIVE.value) -> ActorContext:
        user = HotelUser(
            hotel_user_id=hotel_user_id,
            hotel_id=hotel_id,
            email=email or f"{hotel_user_id}@example.com",
            password_hash=get_password_hash("password123"),
            first_name="Test",
            last_name=role,
            role=role,
            department=department,
            status=status,
        )
        db_session.add(user)
        db_session.commit()
        return ActorContext(
            role=role,
            hotel_id=hotel_id,
            user_id=hotel_user_id,
            department=department,
            email=user.email,
        )
    return _make


@pytest.fixture
def god_admin(make_user):
    return make_user("000000000010001", "GOD Admin", hotel_id=SYSTEM_HOTEL_ID)


@pytest.fixture
def super_admin(make_user):
    return make_user("000000000020001", "Super Admin", hotel_id=SYSTEM_HOTEL_ID)


@pytest.fixture
def hotel_admin(make_user, hotels):
    return make_user("100000000130001", "Hotel Admin")


@pytest.fixture
def manager(make_user, hotels):
    return make_user("100000000140001", "Manager")


@pytest.fixture
def front_desk(make_user, hotels):
    return make_user("100000000160001", "Front Desk", department="Front Desk")
