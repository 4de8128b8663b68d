"""
角色权限矩阵

纯配置，无数据库依赖。所有函数都是全函数：未知角色或未知动作一律拒绝，从不抛出异常。
"""

from typing import Iterable, NamedTuple, FrozenSet

from .constants import (
    ROLE_PERMISSIONS,
    ROLE_BASELINE_GRANTS,
    ACTION_IMPLIES,
    ACTION_VIEW,
    ACTION_EDIT,
    ACTION_MANAGE,
)


class Permission(NamedTuple):
    """(资源类型, 动作) 授权对"""
    resource_type: str
    action: str

    def to_dict(self):
        return {'resource_type': self.resource_type, 'action': self.action}


def allows(role, action) -> bool:
    """
    角色是否允许执行动作

    Args:
        role: 组织角色，未知值或 None 视为无角色
        action: 权限动作

    Returns:
        bool: 是否允许
    """
    try:
        actions = ROLE_PERMISSIONS.get(role)
    except TypeError:
        # 不可哈希的输入
        return False
    if not actions:
        return False
    try:
        return action in actions
    except TypeError:
        return False


def baseline_grants(role) -> FrozenSet[Permission]:
    """获取角色的基础授权集合，未知角色返回空集"""
    try:
        grants = ROLE_BASELINE_GRANTS.get(role, ())
    except TypeError:
        return frozenset()
    return frozenset(Permission(resource_type, action) for resource_type, action in grants)


def _holds(grants: Iterable[Permission], resource_type: str, action: str) -> bool:
    for grant in grants:
        if grant.resource_type != resource_type:
            continue
        if action in ACTION_IMPLIES.get(grant.action, frozenset()):
            return True
    return False


def can_view(grants: Iterable[Permission], resource_type: str) -> bool:
    """view / edit / manage 任一授权即可查看"""
    return _holds(grants, resource_type, ACTION_VIEW)


def can_edit(grants: Iterable[Permission], resource_type: str) -> bool:
    """edit / manage 授权即可编辑"""
    return _holds(grants, resource_type, ACTION_EDIT)


def can_manage(grants: Iterable[Permission], resource_type: str) -> bool:
    return _holds(grants, resource_type, ACTION_MANAGE)


class PermissionChecker:
    """基于已枚举授权集合的便捷检查器，供界面过滤使用"""

    def __init__(self, grants: Iterable[Permission]):
        self.grants = frozenset(grants)

    def can_view(self, resource_type: str) -> bool:
        return can_view(self.grants, resource_type)

    def can_edit(self, resource_type: str) -> bool:
        return can_edit(self.grants, resource_type)

    def can_manage(self, resource_type: str) -> bool:
        return can_manage(self.grants, resource_type)

    def __contains__(self, item):
        return item in self.grants

    def __len__(self):
        return len(self.grants)
