"""
hms_core/errors.py

异常分类 - 只有程序错误和调用方误用才以异常形式抛出

业务拒绝（层级不足、状态转换被阻止、不允许创建的角色）不是异常，
而是以 Decision / TransitionDecision 返回值交给调用方。
"""


class HMSError(Exception):
    """所有 hms_core 异常的基类"""


class ConfigurationError(HMSError):
    """程序错误：例如向 ID 生成器传入了角色编码表中不存在的角色"""


class FormatError(HMSError, ValueError):
    """标识符格式错误（调用方误用）"""


class IdentifierExhaustedError(HMSError):
    """某个 (酒店, 角色) 组合的 4 位序号已用尽"""


class IdentifierConflictError(HMSError):
    """并发分配时多次重试后仍然冲突"""


__all__ = [
    "HMSError",
    "ConfigurationError",
    "FormatError",
    "IdentifierExhaustedError",
    "IdentifierConflictError",
]
