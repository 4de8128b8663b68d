"""
权限审计服务
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import List, Optional

from django.core.exceptions import ValidationError
from django.db import DatabaseError

from ..conf import authz_settings
from ..constants import (
    AUDIT_INSERT,
    AUDIT_UPDATE,
    AUDIT_DELETE,
    AUDIT_OPERATIONS,
    MEMBERSHIP_TABLE,
    SYSTEM_PRINCIPAL_ID,
    ErrorCode,
)
from ..exceptions import AuditWriteError
from ..models import PermissionAuditLog
from .resolvers import coerce_uuid


logger = logging.getLogger(__name__)

_current_actor: ContextVar = ContextVar('org_authz_audit_actor', default=None)


@contextmanager
def audit_actor(actor_id):
    """
    设置当前操作人

    级联删除成员记录时审计记录取这里的操作人，例如:

        with audit_actor(request.user.id):
            organization.delete()
    """
    token = _current_actor.set(actor_id)
    try:
        yield
    finally:
        _current_actor.reset(token)


def current_actor():
    """当前操作人，没有上下文时返回系统操作人"""
    return _current_actor.get() or SYSTEM_PRINCIPAL_ID


class AuditLogger:
    """成员变更审计

    record() 必须在变更所在的事务内调用；写入失败抛出 AuditWriteError，
    由外层 atomic 块回滚整个变更。
    """

    def record(
        self,
        operation: str,
        user_id,
        organization_id,
        old_role: Optional[str],
        new_role: Optional[str],
        performed_by,
        resource_type: str = MEMBERSHIP_TABLE
    ) -> PermissionAuditLog:
        """
        追加一条审计记录

        Args:
            operation: INSERT | UPDATE | DELETE
            user_id: 被影响的用户
            organization_id: 组织ID
            old_role: 修改前的角色 (INSERT 时为 None)
            new_role: 修改后的角色 (DELETE 时为 None)
            performed_by: 操作人

        Returns:
            PermissionAuditLog: 审计记录
        """
        if operation not in AUDIT_OPERATIONS:
            raise AuditWriteError(f"Unknown audit operation: {operation}", ErrorCode.AUDIT_WRITE_FAILED)
        if operation == AUDIT_INSERT and old_role is not None:
            raise AuditWriteError("INSERT audit entries cannot carry an old role", ErrorCode.AUDIT_WRITE_FAILED)
        if operation == AUDIT_DELETE and new_role is not None:
            raise AuditWriteError("DELETE audit entries cannot carry a new role", ErrorCode.AUDIT_WRITE_FAILED)
        if performed_by is None:
            raise AuditWriteError("Audit entries require an acting principal", ErrorCode.AUDIT_WRITE_FAILED)

        try:
            entry = PermissionAuditLog.objects.create(
                user_id=user_id,
                action=operation,
                resource_type=resource_type,
                resource_id=organization_id,
                old_value=old_role,
                new_value=new_role,
                performed_by=performed_by,
            )
        except (DatabaseError, ValidationError, ValueError, TypeError) as e:
            logger.error(f"Audit write failed: {operation} user={user_id} org={organization_id}: {str(e)}")
            raise AuditWriteError(f"Failed to write audit entry: {str(e)}", ErrorCode.AUDIT_WRITE_FAILED) from e

        logger.debug(f"Audit entry written: {entry}")
        return entry

    def record_insert(self, membership, performed_by) -> PermissionAuditLog:
        return self.record(
            AUDIT_INSERT, membership.user_id, membership.organization_id,
            None, membership.role, performed_by
        )

    def record_update(self, membership, old_role: str, performed_by) -> PermissionAuditLog:
        return self.record(
            AUDIT_UPDATE, membership.user_id, membership.organization_id,
            old_role, membership.role, performed_by
        )

    def record_delete(self, membership, performed_by) -> PermissionAuditLog:
        return self.record(
            AUDIT_DELETE, membership.user_id, membership.organization_id,
            membership.role, None, performed_by
        )

    def get_permission_audit_logs(
        self,
        limit: Optional[int] = None,
        offset: int = 0,
        organization_id=None,
        user_id=None
    ) -> List[PermissionAuditLog]:
        """
        获取审计日志 (按时间倒序)

        Args:
            limit: 每页数量，默认取配置，最大不超过 AUDIT_LOG_MAX_PAGE_SIZE
            offset: 偏移量
            organization_id: 按组织过滤 (可选)
            user_id: 按被影响用户过滤 (可选)

        Returns:
            List[PermissionAuditLog]: 审计记录列表
        """
        if limit is None:
            limit = authz_settings.AUDIT_LOG_PAGE_SIZE
        limit = max(0, min(int(limit), authz_settings.AUDIT_LOG_MAX_PAGE_SIZE))
        offset = max(0, int(offset))

        queryset = PermissionAuditLog.objects.all()
        if organization_id is not None:
            org_id = coerce_uuid(organization_id)
            if org_id is None:
                return []
            queryset = queryset.filter(resource_id=org_id)
        if user_id is not None:
            target_id = coerce_uuid(user_id)
            if target_id is None:
                return []
            queryset = queryset.filter(user_id=target_id)

        return list(queryset.order_by('-timestamp')[offset:offset + limit])
