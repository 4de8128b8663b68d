import logging

from django.apps import AppConfig


logger = logging.getLogger(__name__)


class OrgAuthzConfig(AppConfig):
    """Org Authz 应用配置"""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'org_authz'
    verbose_name = 'Org Authz'

    def ready(self):
        """应用初始化时校验配置"""
        from .conf import authz_settings

        # 触发配置校验，配置错误时启动即失败
        _ = authz_settings.MAX_DEPARTMENT_DEPTH
        _ = authz_settings.AUDIT_LOG_PAGE_SIZE

        # 注册内置资源类型的组织解析器
        from .services import resolvers  # noqa: F401

        # 级联删除成员记录的审计
        from . import signals  # noqa: F401

        logger.debug("Org Authz app loaded")
