import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Organization',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(help_text='组织名称', max_length=255)),
                ('description', models.TextField(blank=True, help_text='组织描述')),
            ],
            options={
                'db_table': 'organization',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='User',
            fields=[
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('email', models.EmailField(db_index=True, max_length=255, unique=True)),
                ('personal_info', models.JSONField(blank=True, default=dict, help_text='用户个人信息 {name: string, title: string}')),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('department_role', models.CharField(
                    blank=True,
                    choices=[('manager', 'manager'), ('member', 'member'), ('viewer', 'viewer')],
                    help_text='部门内角色: manager | member | viewer',
                    max_length=20,
                    null=True,
                )),
            ],
            options={
                'db_table': 'user',
            },
        ),
        migrations.CreateModel(
            name='Department',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(help_text='部门名称', max_length=255)),
                ('description', models.TextField(blank=True, help_text='部门描述')),
                ('manager', models.ForeignKey(
                    blank=True,
                    help_text='部门经理',
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='managed_departments',
                    to=settings.AUTH_USER_MODEL,
                )),
                ('organization', models.ForeignKey(
                    help_text='所属组织',
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='departments',
                    to='org_authz.organization',
                )),
                ('parent_department', models.ForeignKey(
                    blank=True,
                    help_text='上级部门 (同一组织内)',
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='children',
                    to='org_authz.department',
                )),
            ],
            options={
                'db_table': 'department',
            },
        ),
        migrations.AddField(
            model_name='user',
            name='department',
            field=models.ForeignKey(
                blank=True,
                help_text='所属部门 (由部门授权接口设置)',
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name='assigned_users',
                to='org_authz.department',
            ),
        ),
        migrations.CreateModel(
            name='OrganizationMember',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('role', models.CharField(
                    choices=[
                        ('owner', 'owner'), ('admin', 'admin'), ('editor', 'editor'),
                        ('member', 'member'), ('viewer', 'viewer'),
                    ],
                    help_text='组织角色: owner | admin | editor | member | viewer',
                    max_length=20,
                )),
                ('organization', models.ForeignKey(
                    help_text='所属组织',
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='members',
                    to='org_authz.organization',
                )),
                ('user', models.ForeignKey(
                    help_text='成员用户',
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='memberships',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'db_table': 'organization_member',
                'unique_together': {('user', 'organization')},
            },
        ),
        migrations.CreateModel(
            name='Workflow',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(help_text='工作流名称', max_length=255)),
                ('organization', models.ForeignKey(
                    help_text='所属组织',
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='workflows',
                    to='org_authz.organization',
                )),
            ],
            options={
                'db_table': 'workflow',
            },
        ),
        migrations.CreateModel(
            name='Form',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(help_text='表单名称', max_length=255)),
                ('organization', models.ForeignKey(
                    help_text='所属组织',
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='forms',
                    to='org_authz.organization',
                )),
            ],
            options={
                'db_table': 'form',
            },
        ),
        migrations.CreateModel(
            name='PermissionAuditLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('user_id', models.UUIDField(db_index=True, help_text='被影响的用户')),
                ('action', models.CharField(
                    choices=[('INSERT', 'INSERT'), ('UPDATE', 'UPDATE'), ('DELETE', 'DELETE')],
                    help_text='操作类型: INSERT | UPDATE | DELETE',
                    max_length=10,
                )),
                ('resource_type', models.CharField(help_text='被修改的表名', max_length=50)),
                ('resource_id', models.UUIDField(help_text='组织ID')),
                ('old_value', models.CharField(blank=True, help_text='修改前的角色', max_length=50, null=True)),
                ('new_value', models.CharField(blank=True, help_text='修改后的角色', max_length=50, null=True)),
                ('performed_by', models.UUIDField(help_text='操作人')),
                ('timestamp', models.DateTimeField(default=django.utils.timezone.now, editable=False, help_text='服务端时间')),
            ],
            options={
                'db_table': 'permission_audit_log',
                'ordering': ['-timestamp'],
            },
        ),
        migrations.AddIndex(
            model_name='user',
            index=models.Index(fields=['is_active'], name='user_is_active_idx'),
        ),
        migrations.AddIndex(
            model_name='user',
            index=models.Index(fields=['department'], name='user_department_idx'),
        ),
        migrations.AddIndex(
            model_name='department',
            index=models.Index(fields=['organization'], name='department_org_idx'),
        ),
        migrations.AddIndex(
            model_name='department',
            index=models.Index(fields=['parent_department'], name='department_parent_idx'),
        ),
        migrations.AddIndex(
            model_name='department',
            index=models.Index(fields=['manager'], name='department_manager_idx'),
        ),
        migrations.AddIndex(
            model_name='organizationmember',
            index=models.Index(fields=['organization', 'role'], name='org_member_org_role_idx'),
        ),
        migrations.AddIndex(
            model_name='workflow',
            index=models.Index(fields=['organization'], name='workflow_org_idx'),
        ),
        migrations.AddIndex(
            model_name='form',
            index=models.Index(fields=['organization'], name='form_org_idx'),
        ),
        migrations.AddIndex(
            model_name='permissionauditlog',
            index=models.Index(fields=['resource_type', 'resource_id'], name='audit_resource_idx'),
        ),
        migrations.AddIndex(
            model_name='permissionauditlog',
            index=models.Index(fields=['performed_by'], name='audit_performed_by_idx'),
        ),
        migrations.AddIndex(
            model_name='permissionauditlog',
            index=models.Index(fields=['timestamp'], name='audit_timestamp_idx'),
        ),
    ]
