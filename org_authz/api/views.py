"""
Org Authz REST API 视图

视图只负责参数解析和响应格式，判权全部交给服务层；拒绝统一返回 403。
"""

import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from ..constants import (
    ACTION_MANAGE,
    ACTION_VIEW,
    RESOURCE_DEPARTMENT,
    RESOURCE_ORGANIZATION,
    ErrorCode,
)
from ..exceptions import AuditWriteError
from ..services import AuditLogger, DepartmentHierarchy, MembershipService, PermissionService
from .serializers import (
    AddMemberSerializer,
    DepartmentAssignmentSerializer,
    PermissionAuditLogSerializer,
    PermissionCheckSerializer,
    PermissionSerializer,
)


logger = logging.getLogger(__name__)


def _denied(action):
    return Response({
        'error': f'Permission denied for action: {action}',
        'code': ErrorCode.PERMISSION_DENIED
    }, status=status.HTTP_403_FORBIDDEN)


def _audit_failed(error):
    logger.error(f"Membership change rolled back: {error.message}")
    return Response({
        'error': 'Membership change could not be audited',
        'code': error.error_code
    }, status=status.HTTP_503_SERVICE_UNAVAILABLE)


class PermissionCheckView(APIView):
    """POST permissions/check/ - 当前用户单项判权"""

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = PermissionCheckSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = PermissionService().check_permission(
            data['resource_type'], data['resource_id'], data['action'], request.user.id
        )
        return Response(result)


class UserPermissionsView(APIView):
    """GET organizations/<org>/permissions/ - 枚举权限

    查询他人权限需要组织 manage 权限。
    """

    permission_classes = [IsAuthenticated]

    def get(self, request, organization_id):
        permission_service = PermissionService()
        user_id = request.query_params.get('user_id') or request.user.id

        if str(user_id) != str(request.user.id) and not permission_service.has_permission(
            RESOURCE_ORGANIZATION, organization_id, ACTION_MANAGE, request.user.id
        ):
            return _denied(ACTION_MANAGE)

        grants = sorted(permission_service.get_user_permissions(user_id, organization_id))
        return Response({
            'user_id': str(user_id),
            'organization_id': str(organization_id),
            'permissions': PermissionSerializer([g.to_dict() for g in grants], many=True).data
        })


class OrganizationMembersView(APIView):
    """POST organizations/<org>/members/ - 添加成员或修改角色"""

    permission_classes = [IsAuthenticated]

    def post(self, request, organization_id):
        serializer = AddMemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            ok = MembershipService().add_user_to_organization(
                request.user.id, data['user_id'], organization_id, data['role']
            )
        except AuditWriteError as e:
            return _audit_failed(e)
        if not ok:
            return _denied(ACTION_MANAGE)
        return Response({'success': True, 'user_id': str(data['user_id']), 'role': data['role']})


class OrganizationMemberDetailView(APIView):
    """DELETE organizations/<org>/members/<user>/ - 移除成员"""

    permission_classes = [IsAuthenticated]

    def delete(self, request, organization_id, user_id):
        try:
            ok = MembershipService().remove_user_from_organization(request.user.id, user_id, organization_id)
        except AuditWriteError as e:
            return _audit_failed(e)
        if not ok:
            return _denied(ACTION_MANAGE)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DepartmentAssignmentView(APIView):
    """POST departments/<dept>/assignments/ - 部门授权"""

    permission_classes = [IsAuthenticated]

    def post(self, request, department_id):
        serializer = DepartmentAssignmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        ok = MembershipService().assign_department_permission(
            request.user.id, data['user_id'], department_id, data['permission']
        )
        if not ok:
            return _denied(ACTION_MANAGE)
        return Response({'success': True})


class DepartmentDescendantsView(APIView):
    """GET departments/<dept>/descendants/ - 部门及全部下级部门"""

    permission_classes = [IsAuthenticated]

    def get(self, request, department_id):
        if not PermissionService().has_permission(
            RESOURCE_DEPARTMENT, department_id, ACTION_VIEW, request.user.id
        ):
            return _denied(ACTION_VIEW)

        descendants = DepartmentHierarchy().all_descendants(department_id)
        return Response({
            'department_id': str(department_id),
            'descendants': sorted(str(d) for d in descendants)
        })


class AuditLogView(APIView):
    """GET audit-logs/?organization_id=&limit=&offset= - 组织审计日志"""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        organization_id = request.query_params.get('organization_id')
        if not organization_id or not PermissionService().has_permission(
            RESOURCE_ORGANIZATION, organization_id, ACTION_MANAGE, request.user.id
        ):
            return _denied(ACTION_MANAGE)

        try:
            limit = int(request.query_params.get('limit')) if request.query_params.get('limit') else None
            offset = int(request.query_params.get('offset', 0))
        except ValueError:
            return Response({
                'error': 'limit and offset must be integers',
                'code': ErrorCode.VALIDATION_ERROR
            }, status=status.HTTP_400_BAD_REQUEST)

        entries = AuditLogger().get_permission_audit_logs(
            limit=limit, offset=offset, organization_id=organization_id
        )
        return Response({
            'results': PermissionAuditLogSerializer(entries, many=True).data,
            'offset': offset,
            'count': len(entries)
        })
