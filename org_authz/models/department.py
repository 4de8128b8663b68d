"""
部门模型 - 组织内的部门树
"""

import uuid
from django.db import models, transaction

from .base import BaseModel
from .organization import Organization
from ..conf import authz_settings
from ..constants import ErrorCode
from ..exceptions import HierarchyCycleError


class Department(BaseModel):
    """部门模型

    parent_department 构成一棵组织内的树：不能指向自己，不能成环，不能跨组织。
    每次 save() 都会校验。
    """

    name = models.CharField(
        max_length=255,
        help_text="部门名称"
    )
    description = models.TextField(
        blank=True,
        help_text="部门描述"
    )
    organization = models.ForeignKey(
        'Organization',
        on_delete=models.CASCADE,
        related_name='departments',
        help_text="所属组织"
    )
    parent_department = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='children',
        help_text="上级部门 (同一组织内)"
    )
    manager = models.ForeignKey(
        'User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='managed_departments',
        help_text="部门经理"
    )

    class Meta:
        db_table = 'department'
        indexes = [
            models.Index(fields=['organization'], name='department_org_idx'),
            models.Index(fields=['parent_department'], name='department_parent_idx'),
            models.Index(fields=['manager'], name='department_manager_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.organization_id})"

    @property
    def is_root(self):
        """是否是根部门"""
        return self.parent_department_id is None

    @classmethod
    def lock_tree(cls, organization_id):
        """
        锁住组织行，串行化同一组织内的部门树写入

        环检测依赖整棵树的状态，必须在事务内调用。
        """
        return (
            Organization.objects.select_for_update()
            .filter(id=organization_id)
            .values_list('id', flat=True)
            .first()
        )

    def save(self, *args, **kwargs):
        with transaction.atomic():
            if self.parent_department_id is not None:
                self.lock_tree(self.organization_id)
            self.validate_hierarchy()
            super().save(*args, **kwargs)

    def validate_hierarchy(self):
        """校验上级部门：非自引用、同组织、无环"""
        parent_id = self.parent_department_id
        if parent_id is None:
            return

        if not isinstance(parent_id, uuid.UUID):
            try:
                parent_id = uuid.UUID(str(parent_id))
            except ValueError:
                raise HierarchyCycleError(
                    f"Invalid parent department id: {parent_id!r}",
                    ErrorCode.VALIDATION_ERROR
                )
            self.parent_department_id = parent_id

        if parent_id == self.id:
            raise HierarchyCycleError(
                f"Department {self.id} cannot be its own parent",
                ErrorCode.HIERARCHY_CYCLE
            )

        parent_org = (
            Department.objects.filter(id=parent_id)
            .values_list('organization_id', flat=True)
            .first()
        )
        if parent_org is None:
            raise HierarchyCycleError(
                f"Parent department not found: {parent_id}",
                ErrorCode.DEPARTMENT_NOT_FOUND
            )
        if parent_org != self.organization_id:
            raise HierarchyCycleError(
                f"Parent department {parent_id} belongs to another organization",
                ErrorCode.HIERARCHY_CROSS_ORGANIZATION
            )

        # 从新的上级往根走，遇到自己即成环
        parents = dict(
            Department.objects.filter(organization_id=self.organization_id)
            .values_list('id', 'parent_department_id')
        )
        max_depth = authz_settings.MAX_DEPARTMENT_DEPTH
        current = parent_id
        seen = set()
        while current is not None:
            if current == self.id or current in seen or len(seen) >= max_depth:
                raise HierarchyCycleError(
                    f"Setting parent {parent_id} on department {self.id} would create a cycle",
                    ErrorCode.HIERARCHY_CYCLE
                )
            seen.add(current)
            current = parents.get(current)
