"""
集中定义所有权限码常量

格式为 "<resource>.<action>"，权限之间没有层级关系，只有集合成员语义。
"""
from typing import Tuple


def is_permission_token(value: str) -> bool:
    """检查字符串是否为 "resource.action" 形式的权限码"""
    if not isinstance(value, str) or value.count(".") != 1:
        return False
    resource, action = value.split(".")
    return bool(resource) and bool(action)


# 酒店管理
HOTEL_CREATE = "hotel.create"
HOTEL_READ = "hotel.read"
HOTEL_UPDATE = "hotel.update"
HOTEL_DELETE = "hotel.delete"          # 仅 GOD Admin - 永久删除
HOTEL_DELIST = "hotel.delist"          # Super Admin 及以上 - 下架
HOTEL_DEACTIVATE = "hotel.deactivate"  # Admin 及以上 - 停用（可恢复）

# 员工管理
STAFF_CREATE = "staff.create"
STAFF_READ = "staff.read"
STAFF_UPDATE = "staff.update"
STAFF_DELETE = "staff.delete"

# 预订管理
BOOKING_CREATE = "booking.create"
BOOKING_READ = "booking.read"
BOOKING_UPDATE = "booking.update"
BOOKING_DELETE = "booking.delete"

# 报表
REPORTS_FULL = "reports.full"
REPORTS_FINANCIAL = "reports.financial"
REPORTS_OPERATIONAL = "reports.operational"

# 系统管理
SYSTEM_CONFIG = "system.config"
SYSTEM_LOGS = "system.logs"


def _collect_permissions() -> Tuple[str, ...]:
    """从本模块的大写常量中收集全部权限码（按定义顺序）"""
    return tuple(
        value
        for name, value in globals().items()
        if name.isupper() and is_permission_token(value)
    )


# 全部权限码 - GOD Admin 的权限集由此推导
ALL_PERMISSIONS = _collect_permissions()
