"""
组织与成员模型
"""

from django.db import models

from .base import BaseModel
from ..constants import ORGANIZATION_ROLES


class Organization(BaseModel):
    """组织模型 - 租户边界"""

    name = models.CharField(
        max_length=255,
        help_text="组织名称"
    )
    description = models.TextField(
        blank=True,
        help_text="组织描述"
    )

    class Meta:
        db_table = 'organization'
        ordering = ['-created_at']

    def __str__(self):
        return self.name


class OrganizationMember(BaseModel):
    """组织成员表 - 每个 (用户, 组织) 只有一个角色

    不要直接调用 save()/delete() 修改角色，走 MembershipStore 才会写审计日志。
    """

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name='members',
        help_text="所属组织"
    )
    user = models.ForeignKey(
        'User',
        on_delete=models.CASCADE,
        related_name='memberships',
        help_text="成员用户"
    )
    role = models.CharField(
        max_length=20,
        choices=[(role, role) for role in ORGANIZATION_ROLES],
        help_text="组织角色: owner | admin | editor | member | viewer"
    )

    class Meta:
        db_table = 'organization_member'
        unique_together = ['user', 'organization']
        indexes = [
            models.Index(fields=['organization', 'role'], name='org_member_org_role_idx'),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.organization_id} ({self.role})"
