"""
认证与授权模块

令牌只携带身份；每次请求从 hotel_users 行重新读取角色、酒店与部门，
鉴权结果始终由 hms_core 的评估器实时计算，不读取行上的权限快照。
"""
import bcrypt
import logging
from datetime import datetime, timedelta, UTC
from typing import Optional, Union
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from hms_app.config import settings
from hms_app.database import get_db
from hms_app.models.tenancy import HotelUser, UserStatus
from hms_app.services import AccessDenied
from hms_core.engine.audit import audit_engine
from hms_core.security.context import ActorContext
from hms_core.security.evaluator import PermissionEvaluator, permission_evaluator
from hms_core.security.roles import RoleLevel

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# 权限拒绝写入全局审计引擎
permission_evaluator.set_audit_engine(audit_engine)


def get_password_hash(password: str) -> str:
    """密码哈希"""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证密码"""
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def create_access_token(user: HotelUser, expires_hours: Optional[int] = None) -> str:
    """创建 JWT token"""
    hours = expires_hours if expires_hours is not None else settings.ACCESS_TOKEN_EXPIRE_HOURS
    expire = datetime.now(UTC) + timedelta(hours=hours)
    to_encode = {
        "sub": user.hotel_user_id,
        "role": user.role,
        "hotel_id": user.hotel_id,
        "email": user.email,
        "exp": expire,
    }
    if user.department:
        to_encode["department"] = user.department
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    """解码 JWT token"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials"
        )


def authenticate(db: Session, email: str, password: str) -> Optional[str]:
    """校验邮箱与密码，成功时更新 last_login 并返回访问令牌"""
    user = db.query(HotelUser).filter(HotelUser.email == email.strip().lower()).first()
    if not user or not verify_password(password, user.password_hash):
        logger.info(f"Login failed for {email}")
        return None
    if user.status != UserStatus.ACTIVE.value:
        logger.info(f"Login rejected for inactive user {user.hotel_user_id}")
        return None
    user.last_login = datetime.utcnow()
    db.commit()
    return create_access_token(user)


async def get_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> ActorContext:
    """获取当前操作者上下文"""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )

    payload = decode_token(credentials.credentials)
    user_id = payload.get("sub")
    user = db.query(HotelUser).filter(HotelUser.hotel_user_id == user_id).first()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if user.status != UserStatus.ACTIVE.value:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is inactive"
        )

    return ActorContext(
        role=user.role,
        hotel_id=user.hotel_id,
        user_id=user.hotel_user_id,
        department=user.department,
        email=user.email,
    )


def _forbidden(message: str, required, current) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"message": message, "required": required, "current": current},
    )


def require_permission(permission: str, evaluator: Optional[PermissionEvaluator] = None):
    """权限检查依赖 - 缺少权限时返回 403，detail 带 required/current"""
    async def permission_checker(actor: ActorContext = Depends(get_actor)) -> ActorContext:
        checker = evaluator or permission_evaluator
        decision = checker.check(actor.role, actor.department, permission, operator_id=actor.user_id)
        if not decision:
            raise _forbidden(decision.reason, decision.required, decision.current)
        return actor
    return permission_checker


def require_role_level(minimum_level: Union[int, RoleLevel], evaluator: Optional[PermissionEvaluator] = None):
    """层级检查依赖 - 操作者层级数值必须 <= minimum_level"""
    async def level_checker(actor: ActorContext = Depends(get_actor)) -> ActorContext:
        checker = evaluator or permission_evaluator
        decision = checker.check_level(actor.role, minimum_level, operator_id=actor.user_id)
        if not decision:
            raise _forbidden(decision.reason, decision.required, decision.current)
        return actor
    return level_checker


# 便捷的层级检查器
require_god_admin = require_role_level(RoleLevel.GOD_ADMIN)
require_super_admin = require_role_level(RoleLevel.SUPER_ADMIN)
require_admin = require_role_level(RoleLevel.ADMIN)
require_manager = require_role_level(RoleLevel.MANAGER)


def http_exception_for(exc: Exception) -> HTTPException:
    """把服务层异常映射为 HTTP 错误：AccessDenied 403，LookupError 404，ValueError 400"""
    if isinstance(exc, AccessDenied):
        return _forbidden(exc.message, exc.required, exc.current)
    if isinstance(exc, LookupError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ValueError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    raise exc
