"""
测试成员变更网关
"""

import uuid
from unittest import mock

from django.test import TestCase

from ..exceptions import AuditWriteError
from ..models import OrganizationMember, PermissionAuditLog, User
from ..services import AuditLogger, MembershipService, MembershipStore
from .factories import DepartmentFactory, MembershipFactory, OrganizationFactory, UserFactory


class MembershipTestMixin:

    def build_fixture(self):
        self.service = MembershipService()

        self.org = OrganizationFactory()
        self.other_org = OrganizationFactory()

        self.owner = UserFactory()
        self.admin = UserFactory()
        self.editor = UserFactory()
        self.member = UserFactory()
        self.newcomer = UserFactory()

        MembershipFactory(user=self.owner, organization=self.org, role='owner')
        MembershipFactory(user=self.admin, organization=self.org, role='admin')
        MembershipFactory(user=self.editor, organization=self.org, role='editor')
        MembershipFactory(user=self.member, organization=self.org, role='member')

    def role_of(self, user, organization=None):
        return (
            OrganizationMember.objects.filter(user=user, organization=organization or self.org)
            .values_list('role', flat=True)
            .first()
        )


class AddUserToOrganizationTest(MembershipTestMixin, TestCase):
    """测试添加成员 / 修改角色"""

    def setUp(self):
        self.build_fixture()

    def test_owner_adds_member(self):
        result = self.service.add_user_to_organization(self.owner.id, self.newcomer.id, self.org.id, 'editor')

        self.assertTrue(result)
        self.assertEqual(self.role_of(self.newcomer), 'editor')

        entry = PermissionAuditLog.objects.get(user_id=self.newcomer.id)
        self.assertEqual(entry.action, 'INSERT')
        self.assertEqual(entry.resource_type, 'organization_member')
        self.assertEqual(entry.resource_id, self.org.id)
        self.assertIsNone(entry.old_value)
        self.assertEqual(entry.new_value, 'editor')
        self.assertEqual(entry.performed_by, self.owner.id)

    def test_admin_changes_role(self):
        result = self.service.add_user_to_organization(self.admin.id, self.member.id, self.org.id, 'viewer')

        self.assertTrue(result)
        self.assertEqual(self.role_of(self.member), 'viewer')

        entry = PermissionAuditLog.objects.get(user_id=self.member.id)
        self.assertEqual(entry.action, 'UPDATE')
        self.assertEqual(entry.old_value, 'member')
        self.assertEqual(entry.new_value, 'viewer')
        self.assertEqual(entry.performed_by, self.admin.id)

    def test_unchanged_role_writes_no_audit(self):
        self.assertTrue(self.service.add_user_to_organization(self.owner.id, self.member.id, self.org.id, 'member'))
        self.assertFalse(PermissionAuditLog.objects.exists())

    def test_editor_is_denied(self):
        result = self.service.add_user_to_organization(self.editor.id, self.newcomer.id, self.org.id, 'viewer')

        self.assertFalse(result)
        self.assertIsNone(self.role_of(self.newcomer))
        self.assertFalse(PermissionAuditLog.objects.exists())

    def test_member_cannot_promote_self(self):
        result = self.service.add_user_to_organization(self.member.id, self.member.id, self.org.id, 'owner')

        self.assertFalse(result)
        self.assertEqual(self.role_of(self.member), 'member')

    def test_non_member_is_denied(self):
        result = self.service.add_user_to_organization(self.newcomer.id, self.newcomer.id, self.org.id, 'owner')
        self.assertFalse(result)
        self.assertIsNone(self.role_of(self.newcomer))

    def test_owner_of_other_organization_is_denied(self):
        outsider = UserFactory()
        MembershipFactory(user=outsider, organization=self.other_org, role='owner')

        result = self.service.add_user_to_organization(outsider.id, self.newcomer.id, self.org.id, 'member')
        self.assertFalse(result)

    def test_invalid_role_rejected(self):
        self.assertFalse(self.service.add_user_to_organization(self.owner.id, self.newcomer.id, self.org.id, 'root'))
        self.assertFalse(self.service.add_user_to_organization(self.owner.id, self.newcomer.id, self.org.id, 'none'))
        self.assertIsNone(self.role_of(self.newcomer))

    def test_invalid_ids_rejected(self):
        self.assertFalse(self.service.add_user_to_organization('bad', self.newcomer.id, self.org.id, 'member'))
        self.assertFalse(self.service.add_user_to_organization(self.owner.id, None, self.org.id, 'member'))
        self.assertFalse(self.service.add_user_to_organization(self.owner.id, self.newcomer.id, 'bad', 'member'))

    def test_unknown_target_user(self):
        self.assertFalse(self.service.add_user_to_organization(self.owner.id, uuid.uuid4(), self.org.id, 'member'))
        self.assertFalse(PermissionAuditLog.objects.exists())

    def test_unknown_organization(self):
        self.assertFalse(self.service.add_user_to_organization(self.owner.id, self.newcomer.id, uuid.uuid4(), 'member'))

    def test_department_manager_cannot_manage_members(self):
        """部门经理提升只作用于部门资源"""
        DepartmentFactory(organization=self.org, manager=self.member)
        result = self.service.add_user_to_organization(self.member.id, self.newcomer.id, self.org.id, 'viewer')
        self.assertFalse(result)

    def test_audit_failure_rolls_back(self):
        with mock.patch.object(AuditLogger, 'record', side_effect=AuditWriteError("disk full")):
            with self.assertRaises(AuditWriteError):
                self.service.add_user_to_organization(self.owner.id, self.newcomer.id, self.org.id, 'member')

        self.assertIsNone(self.role_of(self.newcomer))
        self.assertFalse(PermissionAuditLog.objects.exists())

    def test_audit_failure_rolls_back_role_change(self):
        with mock.patch.object(AuditLogger, 'record', side_effect=AuditWriteError("disk full")):
            with self.assertRaises(AuditWriteError):
                self.service.add_user_to_organization(self.owner.id, self.member.id, self.org.id, 'admin')

        self.assertEqual(self.role_of(self.member), 'member')


class ConcurrentInsertTest(MembershipTestMixin, TestCase):
    """测试并发插入同一成员记录"""

    def setUp(self):
        self.build_fixture()

    def hide_first_lookup(self, user_id):
        """第一次查询目标成员时返回 None，模拟另一个事务在加锁查询之后插入了记录"""
        real_get = MembershipStore.get
        seen = []

        def fake_get(store, lookup_user_id, organization_id, for_update=False):
            if lookup_user_id == user_id and not seen:
                seen.append(lookup_user_id)
                return None
            return real_get(store, lookup_user_id, organization_id, for_update=for_update)

        return mock.patch.object(MembershipStore, 'get', autospec=True, side_effect=fake_get)

    def test_lost_insert_becomes_update(self):
        with self.hide_first_lookup(self.member.id):
            result = self.service.add_user_to_organization(self.owner.id, self.member.id, self.org.id, 'admin')

        self.assertTrue(result)
        self.assertEqual(self.role_of(self.member), 'admin')
        self.assertEqual(OrganizationMember.objects.filter(user=self.member, organization=self.org).count(), 1)

        entry = PermissionAuditLog.objects.get(user_id=self.member.id)
        self.assertEqual(entry.action, 'UPDATE')
        self.assertEqual(entry.old_value, 'member')
        self.assertEqual(entry.new_value, 'admin')

    def test_lost_insert_with_same_role(self):
        with self.hide_first_lookup(self.member.id):
            result = self.service.add_user_to_organization(self.owner.id, self.member.id, self.org.id, 'member')

        self.assertTrue(result)
        self.assertFalse(PermissionAuditLog.objects.exists())


class RemoveUserFromOrganizationTest(MembershipTestMixin, TestCase):
    """测试移除成员"""

    def setUp(self):
        self.build_fixture()

    def test_owner_removes_member(self):
        self.assertTrue(self.service.remove_user_from_organization(self.owner.id, self.member.id, self.org.id))
        self.assertIsNone(self.role_of(self.member))

        entry = PermissionAuditLog.objects.get(user_id=self.member.id)
        self.assertEqual(entry.action, 'DELETE')
        self.assertEqual(entry.old_value, 'member')
        self.assertIsNone(entry.new_value)
        self.assertEqual(entry.performed_by, self.owner.id)

    def test_removing_non_member_succeeds_without_audit(self):
        self.assertTrue(self.service.remove_user_from_organization(self.owner.id, self.newcomer.id, self.org.id))
        self.assertFalse(PermissionAuditLog.objects.exists())

    def test_editor_is_denied(self):
        self.assertFalse(self.service.remove_user_from_organization(self.editor.id, self.member.id, self.org.id))
        self.assertEqual(self.role_of(self.member), 'member')
        self.assertFalse(PermissionAuditLog.objects.exists())

    def test_removed_admin_loses_authority(self):
        self.assertTrue(self.service.remove_user_from_organization(self.owner.id, self.admin.id, self.org.id))
        self.assertFalse(self.service.remove_user_from_organization(self.admin.id, self.member.id, self.org.id))

    def test_audit_failure_rolls_back(self):
        with mock.patch.object(AuditLogger, 'record', side_effect=AuditWriteError("disk full")):
            with self.assertRaises(AuditWriteError):
                self.service.remove_user_from_organization(self.owner.id, self.member.id, self.org.id)

        self.assertEqual(self.role_of(self.member), 'member')

    def test_invalid_ids(self):
        self.assertFalse(self.service.remove_user_from_organization(None, self.member.id, self.org.id))


class AssignDepartmentPermissionTest(MembershipTestMixin, TestCase):
    """测试部门分配"""

    def setUp(self):
        self.build_fixture()
        self.department = DepartmentFactory(organization=self.org)

    def test_admin_assigns_department(self):
        result = self.service.assign_department_permission(
            self.admin.id, self.member.id, self.department.id, 'manager'
        )

        self.assertTrue(result)
        user = User.objects.get(id=self.member.id)
        self.assertEqual(user.department_id, self.department.id)
        self.assertEqual(user.department_role, 'manager')

    def test_does_not_touch_organization_role(self):
        self.service.assign_department_permission(self.owner.id, self.member.id, self.department.id, 'viewer')
        self.assertEqual(self.role_of(self.member), 'member')

    def test_editor_is_denied(self):
        result = self.service.assign_department_permission(
            self.editor.id, self.member.id, self.department.id, 'member'
        )

        self.assertFalse(result)
        self.assertIsNone(User.objects.get(id=self.member.id).department_id)

    def test_invalid_department_role(self):
        result = self.service.assign_department_permission(
            self.owner.id, self.member.id, self.department.id, 'owner'
        )
        self.assertFalse(result)

    def test_unknown_department(self):
        self.assertFalse(
            self.service.assign_department_permission(self.owner.id, self.member.id, uuid.uuid4(), 'member')
        )

    def test_target_must_be_member(self):
        result = self.service.assign_department_permission(
            self.owner.id, self.newcomer.id, self.department.id, 'member'
        )

        self.assertFalse(result)
        self.assertIsNone(User.objects.get(id=self.newcomer.id).department_id)

    def test_department_of_other_organization(self):
        foreign = DepartmentFactory(organization=self.other_org)
        result = self.service.assign_department_permission(self.owner.id, self.member.id, foreign.id, 'member')
        self.assertFalse(result)
