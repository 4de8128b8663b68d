"""
Org Authz 业务逻辑服务
"""

from .permission_service import PermissionService
from .hierarchy_service import DepartmentHierarchy
from .audit_service import AuditLogger
from .membership_service import MembershipStore, MembershipService

__all__ = [
    'PermissionService',
    'DepartmentHierarchy',
    'AuditLogger',
    'MembershipStore',
    'MembershipService'
]
