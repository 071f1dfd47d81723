"""
测试 hms_core.security.creation_policy 模块 - 角色创建策略
"""
import pytest

from hms_core.security.creation_policy import (
    RoleCreationPolicy,
    can_create_role,
    role_creation_policy,
)


class TestCanCreateRole:
    @pytest.mark.parametrize("actor, target, expected", [
        ("Hotel Admin", "Manager", True),
        ("Hotel Admin", "Hotel Admin", False),
        ("Manager", "Front Desk", True),
        ("Manager", "Manager", False),
        ("Super Admin", "GOD Admin", False),
        ("GOD Admin", "GOD Admin", True),
    ])
    def test_reference_cases(self, actor, target, expected):
        """测试基准用例"""
        assert can_create_role(actor, target) is expected

    def test_super_admin_creates_peers(self):
        """测试 Super Admin 可以创建 Super Admin"""
        assert can_create_role("Super Admin", "Super Admin")
        assert can_create_role("Super Admin", "Kitchen")

    def test_hotel_admin_cannot_escalate(self):
        """测试 Hotel Admin 不能创建更高层级"""
        assert not can_create_role("Hotel Admin", "Super Admin")
        assert not can_create_role("Hotel Admin", "GOD Admin")
        assert can_create_role("Hotel Admin", "Finance Department")

    def test_staff_cannot_create_manager(self):
        """测试 STAFF 不能创建 Manager 及以上"""
        assert not can_create_role("Front Desk", "Manager")
        assert not can_create_role("Front Desk", "Hotel Admin")

    def test_staff_creates_staff(self):
        """测试 STAFF 之间默认允许"""
        assert can_create_role("Front Desk", "Kitchen")

    def test_unknown_target_denied(self):
        """测试未知目标角色一律拒绝"""
        assert not can_create_role("GOD Admin", "Emperor")
        assert not can_create_role("GOD Admin", None)

    def test_unknown_actor_treated_as_staff(self):
        """测试未知操作者按 STAFF 处理"""
        assert not can_create_role("Intern", "Manager")
        assert can_create_role("Intern", "Kitchen")

    def test_denial_reason(self):
        """测试拒绝原因"""
        decision = role_creation_policy.check_create_role("Manager", "Hotel Admin")
        assert not decision
        assert decision.reason == "Manager cannot create Hotel Admin users"
        assert decision.required == "Hotel Admin"
        assert decision.current == "Manager"


class TestCanAssignRole:
    def test_unchanged_role_always_allowed(self):
        """测试角色未变化总是允许"""
        policy = RoleCreationPolicy()
        assert policy.can_assign_role("Manager", "Manager", "Manager")
        assert policy.can_assign_role("Kitchen", "Hotel Admin", None)

    def test_changed_role_uses_creation_rule(self):
        """测试角色变化时按创建规则"""
        policy = RoleCreationPolicy()
        assert policy.can_assign_role("Hotel Admin", "Kitchen", "Manager")
        assert not policy.can_assign_role("Hotel Admin", "Manager", "Hotel Admin")


class TestCanDeleteUser:
    def test_strictly_lower_tier(self):
        """测试只能删除严格更低层级"""
        policy = RoleCreationPolicy()
        assert policy.can_delete_user("Hotel Admin", "Manager")
        assert not policy.can_delete_user("Hotel Admin", "Hotel Admin")
        assert not policy.can_delete_user("Manager", "Super Admin")
        assert not policy.can_delete_user("Front Desk", "Kitchen")

    def test_god_admin_deletes_anyone(self):
        """测试 GOD Admin 可删除任何人"""
        assert RoleCreationPolicy().can_delete_user("GOD Admin", "GOD Admin")

    def test_unknown_roles_denied(self):
        """测试未知角色拒绝"""
        policy = RoleCreationPolicy()
        assert not policy.can_delete_user("Intern", "Kitchen")
        assert not policy.can_delete_user("Hotel Admin", "Emperor")

    def test_denial_levels(self):
        """测试拒绝时带层级"""
        decision = RoleCreationPolicy().check_delete_user("Manager", "Hotel Admin")
        assert decision.required == 2
        assert decision.current == 3


class TestCanManageTenant:
    def test_system_tenant(self):
        """测试系统租户可操作任意酒店"""
        assert RoleCreationPolicy.can_manage_tenant("0000000000", "1000000001")

    def test_same_tenant_only(self):
        """测试普通租户只能操作本酒店"""
        assert RoleCreationPolicy.can_manage_tenant("1000000001", "1000000001")
        assert not RoleCreationPolicy.can_manage_tenant("1000000001", "1000000002")
        assert not RoleCreationPolicy.can_manage_tenant(None, None)
