"""
组织成员服务 - 成员存储与成员变更网关
"""

import logging
from typing import Optional

from django.db import IntegrityError, transaction

from .. import db
from ..conf import authz_settings
from ..constants import (
    ORGANIZATION_ROLES,
    RESOURCE_ORGANIZATION,
    ACTION_MANAGE,
)
from ..models import Department, OrganizationMember, User
from .audit_service import AuditLogger
from .permission_service import PermissionService
from .resolvers import coerce_uuid


logger = logging.getLogger(__name__)


class MembershipStore:
    """成员存储

    所有写操作都显式调用审计；必须在事务内调用，审计失败会回滚写入。
    """

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self.audit_logger = audit_logger or AuditLogger()

    def get(self, user_id, organization_id, for_update: bool = False) -> Optional[OrganizationMember]:
        queryset = OrganizationMember.objects.filter(user_id=user_id, organization_id=organization_id)
        if for_update:
            queryset = queryset.select_for_update()
        return queryset.first()

    def upsert(self, user_id, organization_id, role: str, performed_by) -> OrganizationMember:
        """
        新增或更新成员角色

        角色没有变化时不写入也不审计。
        """
        membership = self.get(user_id, organization_id, for_update=True)

        if membership is None:
            try:
                # 并发插入同一 (用户, 组织) 时唯一约束兜底，失败方转为更新
                with transaction.atomic():
                    membership = OrganizationMember.objects.create(
                        user_id=user_id,
                        organization_id=organization_id,
                        role=role
                    )
            except IntegrityError:
                logger.info(
                    f"Concurrent membership insert, updating instead: user={user_id}, organization={organization_id}"
                )
                membership = self.get(user_id, organization_id, for_update=True)
                if membership is None:
                    raise
            else:
                self.audit_logger.record_insert(membership, performed_by)
                return membership

        old_role = membership.role
        if old_role == role:
            return membership

        membership.role = role
        membership.save(update_fields=['role', 'updated_at'])
        self.audit_logger.record_update(membership, old_role, performed_by)
        return membership

    def delete(self, user_id, organization_id, performed_by) -> bool:
        """删除成员记录，记录不存在时返回 False"""
        membership = self.get(user_id, organization_id, for_update=True)
        if membership is None:
            return False

        # post_delete 接收器跳过已由这里审计的记录
        membership._audited = True
        membership.delete()
        self.audit_logger.record_delete(membership, performed_by)
        return True


class MembershipService:
    """成员变更网关

    每个操作的授权检查、写入、审计在同一个事务内完成：
    检查失败不写入，审计失败整体回滚。
    """

    def __init__(
        self,
        permission_service: Optional[PermissionService] = None,
        store: Optional[MembershipStore] = None
    ):
        self.permission_service = permission_service or PermissionService()
        self.store = store or MembershipStore()

    def add_user_to_organization(self, actor_id, user_id, organization_id, role: str) -> bool:
        """
        添加成员或修改成员角色

        Args:
            actor_id: 操作人ID
            user_id: 目标用户ID
            organization_id: 组织ID
            role: 组织角色

        Returns:
            bool: 是否成功，未授权或参数非法时返回 False 且不做任何修改
        """
        actor_uuid = coerce_uuid(actor_id)
        user_uuid = coerce_uuid(user_id)
        org_uuid = coerce_uuid(organization_id)
        if actor_uuid is None or user_uuid is None or org_uuid is None:
            return False
        if role not in ORGANIZATION_ROLES:
            logger.warning(f"Rejected invalid organization role: {role!r}")
            return False

        with db.mutation():
            if not self._can_manage_organization(actor_uuid, org_uuid):
                logger.warning(
                    f"Add member denied: actor={actor_uuid}, user={user_uuid}, organization={org_uuid}"
                )
                return False

            if not User.objects.filter(id=user_uuid).exists():
                return False

            membership = self.store.upsert(user_uuid, org_uuid, role, performed_by=actor_uuid)

        logger.info(
            f"Member role set: user={user_uuid}, organization={org_uuid}, role={membership.role}, actor={actor_uuid}"
        )
        return True

    def remove_user_from_organization(self, actor_id, user_id, organization_id) -> bool:
        """
        移除成员

        Returns:
            bool: 是否授权成功；目标本不是成员时也返回 True
        """
        actor_uuid = coerce_uuid(actor_id)
        user_uuid = coerce_uuid(user_id)
        org_uuid = coerce_uuid(organization_id)
        if actor_uuid is None or user_uuid is None or org_uuid is None:
            return False

        with db.mutation():
            if not self._can_manage_organization(actor_uuid, org_uuid):
                logger.warning(
                    f"Remove member denied: actor={actor_uuid}, user={user_uuid}, organization={org_uuid}"
                )
                return False

            removed = self.store.delete(user_uuid, org_uuid, performed_by=actor_uuid)

        if removed:
            logger.info(f"Member removed: user={user_uuid}, organization={org_uuid}, actor={actor_uuid}")
        else:
            logger.info(f"Member not found to remove: user={user_uuid}, organization={org_uuid}")
        return True

    def assign_department_permission(self, actor_id, user_id, department_id, permission: str) -> bool:
        """
        把用户分配到部门并设置部门角色

        修改的是用户档案上的部门字段，与组织成员角色是两份独立状态。

        Args:
            actor_id: 操作人ID
            user_id: 目标用户ID
            department_id: 部门ID
            permission: 部门角色 ('manager', 'member', 'viewer')

        Returns:
            bool: 是否成功
        """
        actor_uuid = coerce_uuid(actor_id)
        user_uuid = coerce_uuid(user_id)
        dept_uuid = coerce_uuid(department_id)
        if actor_uuid is None or user_uuid is None or dept_uuid is None:
            return False
        if permission not in authz_settings.DEPARTMENT_ROLES:
            logger.warning(f"Rejected invalid department role: {permission!r}")
            return False

        with db.mutation():
            organization_id = (
                Department.objects.filter(id=dept_uuid)
                .values_list('organization_id', flat=True)
                .first()
            )
            if organization_id is None:
                return False

            # 目标用户必须是该组织成员
            if self.store.get(user_uuid, organization_id) is None:
                return False

            if not self._can_manage_organization(actor_uuid, organization_id):
                logger.warning(
                    f"Department assignment denied: actor={actor_uuid}, user={user_uuid}, department={dept_uuid}"
                )
                return False

            updated = User.objects.filter(id=user_uuid).update(
                department_id=dept_uuid,
                department_role=permission
            )
            if not updated:
                return False

        logger.info(
            f"Department assigned: user={user_uuid}, department={dept_uuid}, role={permission}, actor={actor_uuid}"
        )
        return True

    def _can_manage_organization(self, actor_id, organization_id) -> bool:
        # 在写事务内判权，检查与写入共享同一快照；锁住操作人的成员记录防止并发撤权
        self.store.get(actor_id, organization_id, for_update=True)
        return self.permission_service._has_permission(
            RESOURCE_ORGANIZATION, organization_id, ACTION_MANAGE, actor_id
        )
