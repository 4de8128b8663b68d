"""
资源所属组织解析器

每种资源类型一个解析器，判权时按资源类型分发，而不是写一长串分支。
解析失败一律返回 None，由调用方按拒绝处理。
"""

import uuid
import logging
from typing import Dict, Optional

from ..constants import (
    RESOURCE_ORGANIZATION,
    RESOURCE_DEPARTMENT,
    RESOURCE_WORKFLOW,
    RESOURCE_FORM,
)
from ..models import Organization, Department, Workflow, Form


logger = logging.getLogger(__name__)


def coerce_uuid(value) -> Optional[uuid.UUID]:
    """把输入转为 UUID，非法输入返回 None"""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


class OrganizationResolver:
    """资源所属组织解析器基类"""

    resource_type: str = ''

    def resolve(self, resource_id) -> Optional[uuid.UUID]:
        raise NotImplementedError


class SelfOrganizationResolver(OrganizationResolver):
    """组织资源：组织ID就是资源ID本身"""

    resource_type = RESOURCE_ORGANIZATION

    def resolve(self, resource_id):
        org_id = coerce_uuid(resource_id)
        if org_id is None:
            return None
        if not Organization.objects.filter(id=org_id).exists():
            return None
        return org_id


class ModelOrganizationResolver(OrganizationResolver):
    """通过资源记录的 organization_id 字段解析"""

    def __init__(self, resource_type: str, model):
        self.resource_type = resource_type
        self.model = model

    def resolve(self, resource_id):
        pk = coerce_uuid(resource_id)
        if pk is None:
            return None
        return (
            self.model.objects.filter(id=pk)
            .values_list('organization_id', flat=True)
            .first()
        )


_registry: Dict[str, OrganizationResolver] = {}


def register_resolver(resolver: OrganizationResolver):
    """注册资源类型的解析器 (外部模块可以扩展资源类型)"""
    _registry[resolver.resource_type] = resolver
    logger.debug(f"Organization resolver registered: {resolver.resource_type}")


def get_resolver(resource_type) -> Optional[OrganizationResolver]:
    try:
        return _registry.get(resource_type)
    except TypeError:
        return None


def resolve_organization_id(resource_type, resource_id) -> Optional[uuid.UUID]:
    """
    解析资源所属组织

    Args:
        resource_type: 资源类型
        resource_id: 资源ID

    Returns:
        Optional[UUID]: 组织ID，未知类型或资源不存在时返回 None
    """
    resolver = get_resolver(resource_type)
    if resolver is None:
        return None
    return resolver.resolve(resource_id)


register_resolver(SelfOrganizationResolver())
register_resolver(ModelOrganizationResolver(RESOURCE_DEPARTMENT, Department))
register_resolver(ModelOrganizationResolver(RESOURCE_WORKFLOW, Workflow))
register_resolver(ModelOrganizationResolver(RESOURCE_FORM, Form))
