"""
用户模型
"""

from django.db import models
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager

from .base import BaseModel
from ..constants import DEPARTMENT_ROLES


class CustomUserManager(BaseUserManager):
    """自定义用户管理器"""

    def create_user(self, email, password=None, **extra_fields):
        """创建普通用户"""
        if not email:
            raise ValueError('Email is required')

        user = self.model(
            email=self.normalize_email(email).lower(),
            **extra_fields
        )
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """创建超级用户"""
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('personal_info', {})
        return self.create_user(email, password, **extra_fields)


class User(BaseModel, AbstractBaseUser):
    """用户模型，同时承载档案级的部门字段"""

    email = models.EmailField(
        max_length=255,
        unique=True,
        db_index=True
    )
    personal_info = models.JSONField(
        default=dict,
        blank=True,
        help_text="用户个人信息 {name: string, title: string}"
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True
    )
    department = models.ForeignKey(
        'Department',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_users',
        help_text="所属部门 (由部门授权接口设置)"
    )
    department_role = models.CharField(
        max_length=20,
        choices=[(role, role) for role in DEPARTMENT_ROLES],
        null=True,
        blank=True,
        help_text="部门内角色: manager | member | viewer"
    )

    objects = CustomUserManager()

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'user'
        indexes = [
            models.Index(fields=['is_active'], name='user_is_active_idx'),
            models.Index(fields=['department'], name='user_department_idx'),
        ]

    def __str__(self):
        return self.email

    @property
    def display_name(self):
        """显示名称"""
        return self.personal_info.get('name') or self.email
