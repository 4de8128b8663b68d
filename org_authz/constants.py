"""
Org Authz 常量定义

所有枚举值在代码层面约束，不在数据库层面约束
"""

import uuid
from typing import Dict, FrozenSet, List, Tuple

# 组织角色
ROLE_OWNER = 'owner'
ROLE_ADMIN = 'admin'
ROLE_EDITOR = 'editor'
ROLE_MEMBER = 'member'
ROLE_VIEWER = 'viewer'

# 没有成员记录时的哨兵角色
ROLE_NONE = 'none'

ORGANIZATION_ROLES: List[str] = [
    ROLE_OWNER, ROLE_ADMIN, ROLE_EDITOR, ROLE_MEMBER, ROLE_VIEWER
]

# 部门角色 (用户档案上的部门字段)
DEPARTMENT_ROLES: List[str] = ['manager', 'member', 'viewer']

# 资源类型
RESOURCE_ORGANIZATION = 'organization'
RESOURCE_DEPARTMENT = 'department'
RESOURCE_WORKFLOW = 'workflow'
RESOURCE_FORM = 'form'

RESOURCE_TYPES: List[str] = [
    RESOURCE_ORGANIZATION, RESOURCE_DEPARTMENT, RESOURCE_WORKFLOW, RESOURCE_FORM
]

# 权限动作
ACTION_VIEW = 'view'
ACTION_EDIT = 'edit'
ACTION_DELETE = 'delete'
ACTION_MANAGE = 'manage'

AVAILABLE_ACTIONS: List[str] = [ACTION_VIEW, ACTION_EDIT, ACTION_DELETE, ACTION_MANAGE]

# 角色权限矩阵 (代码层面，不存储在数据库)
ROLE_PERMISSIONS: Dict[str, FrozenSet[str]] = {
    ROLE_OWNER: frozenset([ACTION_VIEW, ACTION_EDIT, ACTION_DELETE, ACTION_MANAGE]),
    ROLE_ADMIN: frozenset([ACTION_VIEW, ACTION_EDIT, ACTION_DELETE, ACTION_MANAGE]),
    ROLE_EDITOR: frozenset([ACTION_VIEW, ACTION_EDIT]),
    ROLE_MEMBER: frozenset([ACTION_VIEW]),
    ROLE_VIEWER: frozenset([ACTION_VIEW]),
    ROLE_NONE: frozenset(),
}

# 部门经理提权: 仅这些角色会被提升为 editor
ELEVATABLE_ROLES: FrozenSet[str] = frozenset([ROLE_MEMBER, ROLE_EDITOR])
ELEVATED_ROLE = ROLE_EDITOR

# 角色基础授权 {角色: (资源类型, 动作)}
_MANAGE_ALL: Tuple[Tuple[str, str], ...] = (
    (RESOURCE_ORGANIZATION, ACTION_MANAGE),
    (RESOURCE_DEPARTMENT, ACTION_MANAGE),
    (RESOURCE_FORM, ACTION_MANAGE),
    (RESOURCE_WORKFLOW, ACTION_MANAGE),
)
_VIEW_ALL: Tuple[Tuple[str, str], ...] = (
    (RESOURCE_ORGANIZATION, ACTION_VIEW),
    (RESOURCE_DEPARTMENT, ACTION_VIEW),
    (RESOURCE_FORM, ACTION_VIEW),
    (RESOURCE_WORKFLOW, ACTION_VIEW),
)

ROLE_BASELINE_GRANTS: Dict[str, Tuple[Tuple[str, str], ...]] = {
    ROLE_OWNER: _MANAGE_ALL,
    ROLE_ADMIN: _MANAGE_ALL,
    ROLE_EDITOR: (
        (RESOURCE_ORGANIZATION, ACTION_VIEW),
        (RESOURCE_DEPARTMENT, ACTION_VIEW),
        (RESOURCE_FORM, ACTION_EDIT),
        (RESOURCE_WORKFLOW, ACTION_EDIT),
    ),
    ROLE_MEMBER: _VIEW_ALL,
    ROLE_VIEWER: _VIEW_ALL,
}

# 动作蕴含关系: 持有 key 即视为持有 value 中的动作
ACTION_IMPLIES: Dict[str, FrozenSet[str]] = {
    ACTION_MANAGE: frozenset([ACTION_MANAGE, ACTION_EDIT, ACTION_VIEW]),
    ACTION_EDIT: frozenset([ACTION_EDIT, ACTION_VIEW]),
    ACTION_VIEW: frozenset([ACTION_VIEW]),
    ACTION_DELETE: frozenset([ACTION_DELETE]),
}

# 审计操作类型
AUDIT_INSERT = 'INSERT'
AUDIT_UPDATE = 'UPDATE'
AUDIT_DELETE = 'DELETE'

AUDIT_OPERATIONS: List[str] = [AUDIT_INSERT, AUDIT_UPDATE, AUDIT_DELETE]

# 被审计的成员表名
MEMBERSHIP_TABLE = 'organization_member'

# 级联删除等没有操作人上下文的变更，审计记录中的操作人
SYSTEM_PRINCIPAL_ID = uuid.UUID(int=0)

# 默认设置
DEFAULT_MAX_DEPARTMENT_DEPTH = 64
DEFAULT_AUDIT_LOG_PAGE_SIZE = 20
DEFAULT_AUDIT_LOG_MAX_PAGE_SIZE = 200

DENY_REASON = 'Insufficient permissions'


# 错误代码
class ErrorCode:
    PERMISSION_DENIED = 'permission_denied'
    ORGANIZATION_NOT_FOUND = 'organization_not_found'
    DEPARTMENT_NOT_FOUND = 'department_not_found'
    VALIDATION_ERROR = 'validation_error'
    HIERARCHY_CYCLE = 'hierarchy_cycle'
    HIERARCHY_CROSS_ORGANIZATION = 'hierarchy_cross_organization'
    AUDIT_WRITE_FAILED = 'audit_write_failed'
    AUDIT_IMMUTABLE = 'audit_immutable'
