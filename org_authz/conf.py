"""
Org Authz - 极简配置
所有配置都有默认值，通过 settings.ORG_AUTHZ 覆盖
"""

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
import os

from .constants import (
    DEPARTMENT_ROLES,
    DEFAULT_MAX_DEPARTMENT_DEPTH,
    DEFAULT_AUDIT_LOG_PAGE_SIZE,
    DEFAULT_AUDIT_LOG_MAX_PAGE_SIZE,
)


class OrgAuthzSettings:
    """
    极简配置类 - 配置在访问时读取，测试中可用 override_settings 覆盖
    """

    DEFAULTS = {
        # 部门树遍历的最大深度，超出视为环并拒绝
        'MAX_DEPARTMENT_DEPTH': DEFAULT_MAX_DEPARTMENT_DEPTH,

        # 读路径在 PostgreSQL 上使用 REPEATABLE READ 快照
        'SNAPSHOT_ISOLATION': True,

        # 审计日志分页
        'AUDIT_LOG_PAGE_SIZE': DEFAULT_AUDIT_LOG_PAGE_SIZE,
        'AUDIT_LOG_MAX_PAGE_SIZE': DEFAULT_AUDIT_LOG_MAX_PAGE_SIZE,

        # 可分配的部门角色
        'DEPARTMENT_ROLES': list(DEPARTMENT_ROLES),
    }

    INTEGER_SETTINGS = ('MAX_DEPARTMENT_DEPTH', 'AUDIT_LOG_PAGE_SIZE', 'AUDIT_LOG_MAX_PAGE_SIZE')

    @property
    def user_settings(self):
        return getattr(settings, 'ORG_AUTHZ', {})

    def __getattr__(self, name):
        """智能配置获取"""
        if name.startswith('_') or name not in self.DEFAULTS:
            raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{name}'")

        # 1. 先检查用户是否显式配置
        if name in self.user_settings:
            return self._validate(name, self.user_settings[name])

        # 2. 检查环境变量
        env_value = os.getenv(f'ORG_AUTHZ_{name}')
        if env_value is not None:
            return self._validate(name, self._coerce(name, env_value))

        # 3. 默认值
        return self.DEFAULTS[name]

    def _coerce(self, name, value):
        if name in self.INTEGER_SETTINGS:
            try:
                return int(value)
            except ValueError:
                raise ImproperlyConfigured(f"ORG_AUTHZ_{name} must be an integer, got {value!r}")
        if name == 'SNAPSHOT_ISOLATION':
            return value.strip().lower() in ('1', 'true', 'yes', 'on')
        if name == 'DEPARTMENT_ROLES':
            return [role.strip() for role in value.split(',') if role.strip()]
        return value

    def _validate(self, name, value):
        if name in self.INTEGER_SETTINGS and (not isinstance(value, int) or value < 1):
            raise ImproperlyConfigured(f"ORG_AUTHZ.{name} must be a positive integer")
        return value


# 全局配置实例
authz_settings = OrgAuthzSettings()


# 便捷函数
def get_authz_setting(name, default=None):
    """便捷函数：获取配置项"""
    try:
        return getattr(authz_settings, name)
    except AttributeError:
        return default
