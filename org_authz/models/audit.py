"""
权限审计日志模型
"""

import uuid
from django.db import models
from django.utils import timezone

from ..constants import AUDIT_OPERATIONS, ErrorCode
from ..exceptions import ImmutableAuditLogError


class AuditLogQuerySet(models.QuerySet):
    """审计日志只允许追加"""

    def update(self, **kwargs):
        raise ImmutableAuditLogError("Audit log entries cannot be updated", ErrorCode.AUDIT_IMMUTABLE)

    def delete(self):
        raise ImmutableAuditLogError("Audit log entries cannot be deleted", ErrorCode.AUDIT_IMMUTABLE)


class PermissionAuditLog(models.Model):
    """权限审计日志模型

    不使用外键：审计记录比它描述的成员记录和用户活得更久。
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    user_id = models.UUIDField(
        db_index=True,
        help_text="被影响的用户"
    )
    action = models.CharField(
        max_length=10,
        choices=[(op, op) for op in AUDIT_OPERATIONS],
        help_text="操作类型: INSERT | UPDATE | DELETE"
    )
    resource_type = models.CharField(
        max_length=50,
        help_text="被修改的表名"
    )
    resource_id = models.UUIDField(
        help_text="组织ID"
    )
    old_value = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        help_text="修改前的角色"
    )
    new_value = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        help_text="修改后的角色"
    )
    performed_by = models.UUIDField(
        help_text="操作人"
    )
    timestamp = models.DateTimeField(
        default=timezone.now,
        editable=False,
        help_text="服务端时间"
    )

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        db_table = 'permission_audit_log'
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['resource_type', 'resource_id'], name='audit_resource_idx'),
            models.Index(fields=['performed_by'], name='audit_performed_by_idx'),
            models.Index(fields=['timestamp'], name='audit_timestamp_idx'),
        ]

    def __str__(self):
        return f"{self.action} {self.resource_type}:{self.resource_id} user={self.user_id} by={self.performed_by}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableAuditLogError(
                f"Audit log entry {self.id} cannot be modified",
                ErrorCode.AUDIT_IMMUTABLE
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableAuditLogError(
            f"Audit log entry {self.id} cannot be deleted",
            ErrorCode.AUDIT_IMMUTABLE
        )
