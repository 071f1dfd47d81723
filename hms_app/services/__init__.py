"""
租户服务层
"""
from typing import Optional, Union


class AccessDenied(PermissionError):
    """
    授权拒绝 - 路由层映射为 403

    Attributes:
        message: 拒绝原因
        required: 需要的权限码或层级
        current: 操作者当前的角色或层级
    """

    def __init__(
        self,
        message: str,
        required: Optional[Union[str, int]] = None,
        current: Optional[Union[str, int]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.required = required
        self.current = current

    @classmethod
    def from_decision(cls, decision) -> "AccessDenied":
        """从 Decision / TransitionDecision 构建"""
        return cls(decision.reason, required=decision.required, current=decision.current)

    def to_dict(self):
        return {"message": self.message, "required": self.required, "current": self.current}


__all__ = ["AccessDenied"]
