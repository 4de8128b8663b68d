"""
部门层级服务 - 部门树的遍历与写入
"""

import logging
from typing import Dict, List, Optional, Set

from django.core.exceptions import ValidationError
from django.db import transaction

from ..conf import authz_settings
from ..constants import ErrorCode
from ..exceptions import DepartmentNotFoundError, OrganizationNotFoundError
from ..models import Department, Organization
from .resolvers import coerce_uuid


logger = logging.getLogger(__name__)


class DepartmentHierarchy:
    """部门层级索引

    读操作全部是显式循环，不递归；深度上限和已访问集合防止坏数据导致死循环。
    管理权限只向下传递：上级部门经理管辖所有下级部门，反之不成立。
    """

    def __init__(self):
        self.max_depth = authz_settings.MAX_DEPARTMENT_DEPTH

    def is_manager_or_above(self, department_id, user_id) -> bool:
        """
        用户是否是该部门或其任一上级部门的经理

        Args:
            department_id: 部门ID
            user_id: 用户ID

        Returns:
            bool: 是否有管理权，部门不存在或数据异常时返回 False
        """
        user_uuid = coerce_uuid(user_id)
        current = coerce_uuid(department_id)
        if user_uuid is None or current is None:
            return False

        seen = set()
        while current is not None:
            if current in seen or len(seen) >= self.max_depth:
                logger.warning(
                    f"Department chain guard tripped: start={department_id}, at={current}, depth={len(seen)}"
                )
                return False
            seen.add(current)

            row = (
                Department.objects.filter(id=current)
                .values_list('manager_id', 'parent_department_id')
                .first()
            )
            if row is None:
                return False

            manager_id, parent_id = row
            if manager_id == user_uuid:
                return True
            current = parent_id

        return False

    def ancestors(self, department_id) -> List:
        """获取部门的上级链 (不含自身，从近到远)"""
        dept_id = coerce_uuid(department_id)
        if dept_id is None:
            return []

        org_id = self._organization_of(dept_id)
        if org_id is None:
            return []

        parents = self._parent_map(org_id)
        chain = []
        current = parents.get(dept_id)
        while current is not None and current not in chain and len(chain) < self.max_depth:
            chain.append(current)
            current = parents.get(current)
        return chain

    def all_descendants(self, root_department_id) -> Set:
        """
        获取部门及其所有下级部门

        Args:
            root_department_id: 根部门ID

        Returns:
            Set: 部门ID集合 (包含根部门)，部门不存在时返回空集
        """
        root_id = coerce_uuid(root_department_id)
        if root_id is None:
            return set()

        org_id = self._organization_of(root_id)
        if org_id is None:
            return set()

        children = self._children_map(org_id)
        result = {root_id}
        stack = [(root_id, 0)]
        while stack:
            node, depth = stack.pop()
            if depth >= self.max_depth:
                logger.warning(f"Department descendant walk hit depth limit at {node}")
                continue
            for child in children.get(node, ()):
                if child not in result:
                    result.add(child)
                    stack.append((child, depth + 1))
        return result

    def managed_departments(self, user_id, organization_id) -> Set:
        """用户直接管理的部门及其全部下级部门"""
        user_uuid = coerce_uuid(user_id)
        org_id = coerce_uuid(organization_id)
        if user_uuid is None or org_id is None:
            return set()

        result = set()
        roots = Department.objects.filter(
            organization_id=org_id, manager_id=user_uuid
        ).values_list('id', flat=True)
        for root_id in roots:
            if root_id not in result:
                result |= self.all_descendants(root_id)
        return result

    def create_department(
        self,
        organization_id,
        name: str,
        parent_id=None,
        manager_id=None,
        description: str = ''
    ) -> Department:
        """
        创建部门

        Raises:
            OrganizationNotFoundError: 组织不存在
            HierarchyCycleError: 上级部门不合法
        """
        with transaction.atomic():
            try:
                organization = Organization.objects.select_for_update().get(id=organization_id)
            except (Organization.DoesNotExist, ValueError, ValidationError):
                raise OrganizationNotFoundError(
                    f"Organization not found: {organization_id}",
                    ErrorCode.ORGANIZATION_NOT_FOUND
                )

            department = Department(
                organization=organization,
                name=name,
                description=description,
                parent_department_id=parent_id,
                manager_id=manager_id,
            )
            department.save()

        logger.info(f"Department created: {department.id} in organization {organization.id}, parent={parent_id}")
        return department

    def set_parent(self, department_id, parent_id) -> Department:
        """
        修改上级部门

        拒绝自引用、把下级设为上级、跨组织；拒绝时部门树保持不变。

        Raises:
            DepartmentNotFoundError: 部门不存在
            HierarchyCycleError: 会导致自引用或环
        """
        with transaction.atomic():
            department = self._lock_for_tree_write(department_id)
            previous = department.parent_department_id
            department.parent_department_id = parent_id
            department.save(update_fields=['parent_department', 'updated_at'])

        logger.info(f"Department parent changed: {department.id} {previous} -> {parent_id}")
        return department

    def set_manager(self, department_id, manager_id) -> Department:
        """设置部门经理 (manager_id 为 None 时清空)"""
        with transaction.atomic():
            department = self._lock_for_tree_write(department_id)
            department.manager_id = manager_id
            department.save(update_fields=['manager', 'updated_at'])

        logger.info(f"Department manager changed: {department.id} -> {manager_id}")
        return department

    def find_cycles(self, organization_id=None) -> List[Dict]:
        """
        检查已存储的部门树

        Returns:
            List[Dict]: 违规列表 [{department_id, problem}]
        """
        queryset = Department.objects.all()
        if organization_id is not None:
            queryset = queryset.filter(organization_id=organization_id)

        rows = list(queryset.values_list('id', 'organization_id', 'parent_department_id'))
        org_of = {dept_id: org_id for dept_id, org_id, _ in rows}
        parent_of = {dept_id: parent_id for dept_id, _, parent_id in rows}
        if organization_id is not None:
            # 跨组织的上级不在当前查询范围内，补查一次
            missing = {p for p in parent_of.values() if p is not None and p not in org_of}
            org_of.update(
                Department.objects.filter(id__in=missing).values_list('id', 'organization_id')
            )

        problems = []
        for dept_id, org_id, parent_id in rows:
            if parent_id is None:
                continue
            if parent_id == dept_id:
                problems.append({'department_id': dept_id, 'problem': 'self_reference'})
                continue
            if org_of.get(parent_id) != org_id:
                problems.append({'department_id': dept_id, 'problem': 'cross_organization'})
                continue

            seen = {dept_id}
            current = parent_id
            while current is not None:
                if current in seen or len(seen) > self.max_depth:
                    problems.append({'department_id': dept_id, 'problem': 'cycle'})
                    break
                seen.add(current)
                current = parent_of.get(current)

        return problems

    def _lock_for_tree_write(self, department_id) -> Department:
        # 先锁组织再锁部门，所有树写入按同一顺序加锁
        organization_id = self._organization_of(coerce_uuid(department_id))
        if organization_id is not None:
            Department.lock_tree(organization_id)
        return self._get_for_update(department_id)

    def _get_for_update(self, department_id) -> Department:
        dept_id = coerce_uuid(department_id)
        try:
            if dept_id is None:
                raise Department.DoesNotExist
            return Department.objects.select_for_update().get(id=dept_id)
        except Department.DoesNotExist:
            raise DepartmentNotFoundError(
                f"Department not found: {department_id}",
                ErrorCode.DEPARTMENT_NOT_FOUND
            )

    def _organization_of(self, department_id) -> Optional[object]:
        return (
            Department.objects.filter(id=department_id)
            .values_list('organization_id', flat=True)
            .first()
        )

    def _parent_map(self, organization_id) -> Dict:
        return dict(
            Department.objects.filter(organization_id=organization_id)
            .values_list('id', 'parent_department_id')
        )

    def _children_map(self, organization_id) -> Dict:
        children: Dict = {}
        for dept_id, parent_id in self._parent_map(organization_id).items():
            if parent_id is not None:
                children.setdefault(parent_id, []).append(dept_id)
        return children
