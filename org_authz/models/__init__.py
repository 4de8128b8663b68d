"""
Org Authz 数据模型
"""

from .user import User
from .organization import Organization, OrganizationMember
from .department import Department
from .resources import Workflow, Form
from .audit import PermissionAuditLog

__all__ = [
    'User',
    'Organization',
    'OrganizationMember',
    'Department',
    'Workflow',
    'Form',
    'PermissionAuditLog'
]
