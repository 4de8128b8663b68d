"""
Org Authz API 序列化器
"""

from rest_framework import serializers

from ..conf import authz_settings
from ..constants import ORGANIZATION_ROLES, RESOURCE_TYPES, AVAILABLE_ACTIONS
from ..models import PermissionAuditLog


class PermissionCheckSerializer(serializers.Serializer):
    """判权请求

    资源类型和动作不做枚举校验：未知值由判权服务按拒绝处理。
    """
    resource_type = serializers.CharField(max_length=50)
    resource_id = serializers.CharField(max_length=64)
    action = serializers.CharField(max_length=20)


class PermissionSerializer(serializers.Serializer):
    resource_type = serializers.ChoiceField(choices=RESOURCE_TYPES)
    action = serializers.ChoiceField(choices=AVAILABLE_ACTIONS)


class AddMemberSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    role = serializers.ChoiceField(choices=ORGANIZATION_ROLES)


class DepartmentAssignmentSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    permission = serializers.CharField(max_length=20)

    def validate_permission(self, value):
        if value not in authz_settings.DEPARTMENT_ROLES:
            raise serializers.ValidationError(f"Invalid department role: {value}")
        return value


class PermissionAuditLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = PermissionAuditLog
        fields = [
            'id', 'user_id', 'action', 'resource_type', 'resource_id',
            'old_value', 'new_value', 'performed_by', 'timestamp'
        ]
        read_only_fields = fields
