"""
组织内资源模型 - 工作流与表单

这里只保留判权需要的最小字段 (所属组织)，业务字段由外部模块维护。
"""

from django.db import models

from .base import BaseModel


class Workflow(BaseModel):
    """工作流"""

    name = models.CharField(
        max_length=255,
        help_text="工作流名称"
    )
    organization = models.ForeignKey(
        'Organization',
        on_delete=models.CASCADE,
        related_name='workflows',
        help_text="所属组织"
    )

    class Meta:
        db_table = 'workflow'
        indexes = [
            models.Index(fields=['organization'], name='workflow_org_idx'),
        ]

    def __str__(self):
        return self.name


class Form(BaseModel):
    """表单"""

    name = models.CharField(
        max_length=255,
        help_text="表单名称"
    )
    organization = models.ForeignKey(
        'Organization',
        on_delete=models.CASCADE,
        related_name='forms',
        help_text="所属组织"
    )

    class Meta:
        db_table = 'form'
        indexes = [
            models.Index(fields=['organization'], name='form_org_idx'),
        ]

    def __str__(self):
        return self.name
