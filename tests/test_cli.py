"""
hms-admin 命令行测试
"""
import json

import pytest
from sqlalchemy.orm import sessionmaker
from typer.testing import CliRunner

from hms_app import cli
from hms_app.models.tenancy import HotelUser
from hms_app.security.auth import verify_password

runner = CliRunner()


@pytest.fixture
def cli_session(db_engine, monkeypatch):
    """命令行使用测试数据库"""
    factory = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    monkeypatch.setattr(cli, "SessionLocal", factory)
    return factory


class TestSeedAdmin:
    def test_creates_system_god_admin(self, cli_session):
        """测试创建系统租户 GOD Admin"""
        result = runner.invoke(cli.app, [
            "seed-admin", "--email", "Root@Example.com", "--password", "changeme123",
        ])
        assert result.exit_code == 0, result.output
        assert "000000000010001" in result.output

        db = cli_session()
        user = db.query(HotelUser).one()
        assert user.hotel_id == "0000000000"
        assert user.email == "root@example.com"
        assert verify_password("changeme123", user.password_hash)
        assert json.loads(user.permissions)["level"] == "GOD_ADMIN"
        db.close()

    def test_idempotent(self, cli_session):
        """测试重复执行不会创建第二个 GOD Admin"""
        args = ["seed-admin", "--email", "root@example.com", "--password", "changeme123"]
        runner.invoke(cli.app, args)
        result = runner.invoke(cli.app, args)
        assert result.exit_code == 0
        assert "already exists" in result.output

        db = cli_session()
        assert db.query(HotelUser).count() == 1
        db.close()


class TestParseId:
    def test_long_form(self):
        """测试解析长格式 ID"""
        result = runner.invoke(cli.app, ["parse-id", "100000000530007"])
        assert result.exit_code == 0
        assert "0000000005" in result.output
        assert "long" in result.output

    def test_malformed(self):
        """测试格式错误退出码为 1"""
        result = runner.invoke(cli.app, ["parse-id", "12345"])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestRoles:
    def test_json(self):
        """测试以 JSON 输出角色列表"""
        result = runner.invoke(cli.app, ["roles", "--json"])
        assert result.exit_code == 0
        rows = json.loads(result.output)
        by_role = {row["role"]: row for row in rows}
        assert len(rows) == 13
        assert by_role["Super Admin"]["level"] == 1
        assert "hotel.delete" in by_role["GOD Admin"]["permissions"]
        assert "hotel.delete" not in by_role["Super Admin"]["permissions"]

    def test_table(self):
        """测试表格输出"""
        result = runner.invoke(cli.app, ["roles"])
        assert result.exit_code == 0
        assert "Roles" in result.output
