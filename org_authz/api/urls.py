"""
Org Authz REST API 路由
"""

from django.urls import path

from .views import (
    AuditLogView,
    DepartmentAssignmentView,
    DepartmentDescendantsView,
    OrganizationMemberDetailView,
    OrganizationMembersView,
    PermissionCheckView,
    UserPermissionsView,
)

app_name = 'org_authz'

urlpatterns = [
    # 判权
    path('permissions/check/', PermissionCheckView.as_view(), name='permission-check'),
    path('organizations/<uuid:organization_id>/permissions/', UserPermissionsView.as_view(), name='user-permissions'),

    # 成员变更
    path('organizations/<uuid:organization_id>/members/', OrganizationMembersView.as_view(), name='organization-members'),
    path(
        'organizations/<uuid:organization_id>/members/<uuid:user_id>/',
        OrganizationMemberDetailView.as_view(),
        name='organization-member-detail'
    ),

    # 部门
    path('departments/<uuid:department_id>/assignments/', DepartmentAssignmentView.as_view(), name='department-assignments'),
    path('departments/<uuid:department_id>/descendants/', DepartmentDescendantsView.as_view(), name='department-descendants'),

    # 审计
    path('audit-logs/', AuditLogView.as_view(), name='audit-logs'),
]
