"""
测试数据模型
"""

import os
from unittest import mock

from django.core.exceptions import ImproperlyConfigured
from django.db import IntegrityError, transaction
from django.test import SimpleTestCase, TestCase, override_settings

from ..conf import authz_settings, get_authz_setting
from ..constants import SYSTEM_PRINCIPAL_ID
from ..exceptions import AuditWriteError
from ..models import Department, Form, OrganizationMember, PermissionAuditLog, User, Workflow
from ..services import AuditLogger, MembershipService
from ..services.audit_service import audit_actor
from .factories import (
    DepartmentFactory,
    FormFactory,
    MembershipFactory,
    OrganizationFactory,
    UserFactory,
    WorkflowFactory,
)


class UserModelTest(TestCase):

    def test_create_user_normalizes_email(self):
        user = User.objects.create_user('Alice@Example.COM', password='secret')
        self.assertEqual(user.email, 'alice@example.com')
        self.assertTrue(user.check_password('secret'))

    def test_create_user_requires_email(self):
        with self.assertRaises(ValueError):
            User.objects.create_user('')

    def test_create_superuser(self):
        user = User.objects.create_superuser('root@example.com', password='secret')
        self.assertTrue(user.is_active)
        self.assertEqual(user.personal_info, {})

    def test_display_name(self):
        named = UserFactory(personal_info={'name': 'Alice'})
        unnamed = UserFactory(personal_info={})
        self.assertEqual(named.display_name, 'Alice')
        self.assertEqual(unnamed.display_name, unnamed.email)


class OrganizationModelTest(TestCase):
    """测试组织删除级联"""

    def test_membership_unique_per_organization(self):
        membership = MembershipFactory()
        with self.assertRaises(IntegrityError), transaction.atomic():
            OrganizationMember.objects.create(
                user=membership.user, organization=membership.organization, role='viewer'
            )

    def test_delete_cascades(self):
        org = OrganizationFactory()
        org_id = org.id
        DepartmentFactory(organization=org)
        WorkflowFactory(organization=org)
        FormFactory(organization=org)
        MembershipFactory(organization=org)

        org.delete()

        self.assertFalse(Department.objects.filter(organization_id=org_id).exists())
        self.assertFalse(Workflow.objects.filter(organization_id=org_id).exists())
        self.assertFalse(Form.objects.filter(organization_id=org_id).exists())
        self.assertFalse(OrganizationMember.objects.filter(organization_id=org_id).exists())

    def test_audit_survives_organization_delete(self):
        org = OrganizationFactory()
        org_id = org.id
        owner = UserFactory()
        MembershipFactory(user=owner, organization=org, role='owner')
        MembershipService().add_user_to_organization(owner.id, UserFactory().id, org_id, 'member')

        org.delete()

        entries = PermissionAuditLog.objects.filter(resource_id=org_id)
        self.assertEqual(entries.filter(action='INSERT').count(), 1)
        # 两条成员记录随组织级联删除，各有一条 DELETE 审计
        self.assertEqual(entries.filter(action='DELETE').count(), 2)
        self.assertEqual(
            set(entries.filter(action='DELETE').values_list('performed_by', flat=True)),
            {SYSTEM_PRINCIPAL_ID}
        )

    def test_deleting_manager_clears_department_manager(self):
        manager = UserFactory()
        department = DepartmentFactory(manager=manager)
        manager.delete()

        department.refresh_from_db()
        self.assertIsNone(department.manager_id)

    def test_department_is_root(self):
        root = DepartmentFactory()
        child = DepartmentFactory(organization=root.organization, parent_department=root)
        self.assertTrue(root.is_root)
        self.assertFalse(child.is_root)


class CascadeAuditTest(TestCase):
    """测试级联删除成员记录的审计"""

    def setUp(self):
        self.org = OrganizationFactory()
        self.owner = UserFactory()
        self.target = UserFactory()
        MembershipFactory(user=self.owner, organization=self.org, role='owner')
        MembershipService().add_user_to_organization(self.owner.id, self.target.id, self.org.id, 'member')

    def test_user_delete_is_audited(self):
        target_id = self.target.id
        self.target.delete()

        self.assertFalse(OrganizationMember.objects.filter(user_id=target_id).exists())
        entry = PermissionAuditLog.objects.get(user_id=target_id, action='DELETE')
        self.assertEqual(entry.resource_id, self.org.id)
        self.assertEqual(entry.old_value, 'member')
        self.assertIsNone(entry.new_value)
        self.assertEqual(entry.performed_by, SYSTEM_PRINCIPAL_ID)

    def test_actor_context(self):
        target_id = self.target.id
        with audit_actor(self.owner.id):
            self.target.delete()

        entry = PermissionAuditLog.objects.get(user_id=target_id, action='DELETE')
        self.assertEqual(entry.performed_by, self.owner.id)

    def test_gateway_remove_writes_single_entry(self):
        MembershipService().remove_user_from_organization(self.owner.id, self.target.id, self.org.id)
        self.assertEqual(
            PermissionAuditLog.objects.filter(user_id=self.target.id, action='DELETE').count(), 1
        )

    def test_audit_failure_blocks_user_delete(self):
        with mock.patch.object(AuditLogger, 'record', side_effect=AuditWriteError("disk full")):
            with self.assertRaises(AuditWriteError), transaction.atomic():
                self.target.delete()

        self.assertTrue(User.objects.filter(id=self.target.id).exists())
        self.assertTrue(
            OrganizationMember.objects.filter(user_id=self.target.id, organization=self.org).exists()
        )


class SettingsTest(SimpleTestCase):
    """测试配置读取"""

    def test_configured_value(self):
        self.assertEqual(authz_settings.MAX_DEPARTMENT_DEPTH, 32)

    @override_settings(ORG_AUTHZ={})
    def test_defaults(self):
        self.assertEqual(authz_settings.MAX_DEPARTMENT_DEPTH, 64)
        self.assertTrue(authz_settings.SNAPSHOT_ISOLATION)
        self.assertEqual(authz_settings.DEPARTMENT_ROLES, ['manager', 'member', 'viewer'])

    @override_settings(ORG_AUTHZ={})
    def test_environment_override(self):
        with mock.patch.dict(os.environ, {
            'ORG_AUTHZ_MAX_DEPARTMENT_DEPTH': '10',
            'ORG_AUTHZ_SNAPSHOT_ISOLATION': 'false',
        }):
            self.assertEqual(authz_settings.MAX_DEPARTMENT_DEPTH, 10)
            self.assertFalse(authz_settings.SNAPSHOT_ISOLATION)

    @override_settings(ORG_AUTHZ={'MAX_DEPARTMENT_DEPTH': 0})
    def test_invalid_value(self):
        with self.assertRaises(ImproperlyConfigured):
            authz_settings.MAX_DEPARTMENT_DEPTH

    def test_unknown_setting(self):
        with self.assertRaises(AttributeError):
            authz_settings.CACHE_TIMEOUT
        self.assertEqual(get_authz_setting('CACHE_TIMEOUT', 'fallback'), 'fallback')
