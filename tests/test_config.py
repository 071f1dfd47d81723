"""
配置与日志测试
"""
import logging

from hms_app.config import Settings
from hms_app.logging_config import setup_logging
from hms_core.security.context import SYSTEM_HOTEL_ID, ActorContext


class TestSettings:
    def test_defaults(self):
        """测试默认配置"""
        s = Settings(_env_file=None)
        assert s.ALGORITHM == "HS256"
        assert s.ID_ALLOCATION_RETRIES == 5

    def test_env_override(self, monkeypatch):
        """测试环境变量覆盖"""
        monkeypatch.setenv("ID_ALLOCATION_RETRIES", "9")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        s = Settings(_env_file=None)
        assert s.ID_ALLOCATION_RETRIES == 9
        assert s.LOG_LEVEL == "DEBUG"

    def test_system_tenant_not_configurable(self, monkeypatch):
        """测试系统租户 ID 固定由核心层定义，环境变量无法覆盖"""
        monkeypatch.setenv("SYSTEM_HOTEL_ID", "9999999999")
        s = Settings(_env_file=None)
        assert not hasattr(s, "SYSTEM_HOTEL_ID")
        assert SYSTEM_HOTEL_ID == "0000000000"
        assert ActorContext(role="GOD Admin", hotel_id="0000000000", user_id="000000000010001").is_system


class TestSetupLogging:
    def test_level_applied(self, monkeypatch):
        """测试日志级别生效"""
        calls = {}
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))
        setup_logging("warning")
        assert calls["level"] == logging.WARNING
        assert "%(name)s" in calls["format"]
