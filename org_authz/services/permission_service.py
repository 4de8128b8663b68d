"""
权限判定服务 - 单项判权与权限枚举

所有读操作都是全函数：无法解析的输入、不存在的资源、数据库异常，一律返回拒绝。
判定结果不缓存，每次调用都重新读取当前状态。
"""

import logging
from typing import Dict, FrozenSet, Iterable, Optional

from django.db import DatabaseError

from .. import db
from ..constants import (
    ROLE_NONE,
    RESOURCE_DEPARTMENT,
    ELEVATABLE_ROLES,
    ELEVATED_ROLE,
    ACTION_MANAGE,
    DENY_REASON,
)
from ..matrix import Permission, PermissionChecker, allows, baseline_grants
from ..models import Department, OrganizationMember
from .hierarchy_service import DepartmentHierarchy
from .resolvers import coerce_uuid, resolve_organization_id


logger = logging.getLogger(__name__)


class PermissionService:
    """权限判定服务"""

    def __init__(self, hierarchy: Optional[DepartmentHierarchy] = None):
        self.hierarchy = hierarchy or DepartmentHierarchy()

    def get_role(self, user_id, organization_id) -> str:
        """获取用户在组织中的角色，没有成员记录时返回 'none'"""
        user_uuid = coerce_uuid(user_id)
        org_uuid = coerce_uuid(organization_id)
        if user_uuid is None or org_uuid is None:
            return ROLE_NONE

        role = (
            OrganizationMember.objects.filter(user_id=user_uuid, organization_id=org_uuid)
            .values_list('role', flat=True)
            .first()
        )
        return role or ROLE_NONE

    def effective_role(self, resource_type, resource_id, requester_id) -> str:
        """
        计算请求者对资源的有效角色

        部门资源上，部门经理 (或上级部门经理) 的 member/editor 角色提升为 editor。
        owner/admin 已是最高，viewer 不提升。
        """
        organization_id = resolve_organization_id(resource_type, resource_id)
        if organization_id is None:
            return ROLE_NONE

        role = self.get_role(requester_id, organization_id)

        if (
            resource_type == RESOURCE_DEPARTMENT
            and role in ELEVATABLE_ROLES
            and self.hierarchy.is_manager_or_above(resource_id, requester_id)
        ):
            role = ELEVATED_ROLE

        return role

    def has_permission(self, resource_type, resource_id, action, requester_id) -> bool:
        """
        单项判权

        Args:
            resource_type: 资源类型 ('organization', 'department', 'workflow', 'form')
            resource_id: 资源ID
            action: 权限动作 ('view', 'edit', 'delete', 'manage')
            requester_id: 请求者用户ID

        Returns:
            bool: 是否有权限，从不抛出异常
        """
        try:
            with db.snapshot():
                return self._has_permission(resource_type, resource_id, action, requester_id)
        except DatabaseError:
            logger.error(
                f"Permission check failed, denying: type={resource_type}, id={resource_id}, "
                f"action={action}, requester={requester_id}",
                exc_info=True
            )
            return False

    def _has_permission(self, resource_type, resource_id, action, requester_id) -> bool:
        """在调用方事务内判权，供写路径复用同一快照"""
        role = self.effective_role(resource_type, resource_id, requester_id)
        return allows(role, action)

    def check_permission(self, resource_type, resource_id, action, requester_id) -> Dict:
        """
        判权并给出原因

        Returns:
            Dict: {'allowed': bool, 'reason': Optional[str]}
        """
        allowed = self.has_permission(resource_type, resource_id, action, requester_id)
        return {
            'allowed': allowed,
            'reason': None if allowed else DENY_REASON
        }

    def check_permissions(self, resource_type, resource_id, actions: Iterable[str], requester_id) -> Dict[str, bool]:
        """
        批量判权 - 同一快照内检查多个动作

        Returns:
            Dict[str, bool]: 权限检查结果
        """
        actions = list(actions)
        try:
            with db.snapshot():
                role = self.effective_role(resource_type, resource_id, requester_id)
        except DatabaseError:
            logger.error(
                f"Batch permission check failed, denying: type={resource_type}, id={resource_id}",
                exc_info=True
            )
            role = ROLE_NONE
        return {action: allows(role, action) for action in actions}

    def get_user_permissions(self, user_id, organization_id) -> FrozenSet[Permission]:
        """
        枚举用户在组织中的全部授权

        Args:
            user_id: 用户ID
            organization_id: 组织ID

        Returns:
            FrozenSet[Permission]: (资源类型, 动作) 集合，非成员返回空集
        """
        try:
            with db.snapshot():
                return self._get_user_permissions(user_id, organization_id)
        except DatabaseError:
            logger.error(
                f"Permission enumeration failed: user={user_id}, organization={organization_id}",
                exc_info=True
            )
            return frozenset()

    def _get_user_permissions(self, user_id, organization_id) -> FrozenSet[Permission]:
        role = self.get_role(user_id, organization_id)
        if role == ROLE_NONE:
            return frozenset()

        grants = set(baseline_grants(role))

        # 部门经理的管理授权叠加在组织角色之上
        manages_any = Department.objects.filter(
            organization_id=coerce_uuid(organization_id),
            manager_id=coerce_uuid(user_id)
        ).exists()
        if manages_any:
            grants.add(Permission(RESOURCE_DEPARTMENT, ACTION_MANAGE))

        return frozenset(grants)

    def get_permission_checker(self, user_id, organization_id) -> PermissionChecker:
        """基于枚举结果构造检查器"""
        return PermissionChecker(self.get_user_permissions(user_id, organization_id))
