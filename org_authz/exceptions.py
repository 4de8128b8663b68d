"""
Org Authz 自定义异常

读路径（权限判定）从不抛出异常，拒绝即 False。
这里的异常只用于写路径：层级约束冲突、审计写入失败等。
"""

from typing import Optional


class OrgAuthzError(Exception):
    """Org Authz 基础异常"""
    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class NotFoundError(OrgAuthzError):
    """资源不存在错误基类"""
    pass


class OrganizationNotFoundError(NotFoundError):
    """组织不存在错误"""
    pass


class DepartmentNotFoundError(NotFoundError):
    """部门不存在错误"""
    pass


class ConstraintViolationError(OrgAuthzError):
    """写入违反约束"""
    pass


class HierarchyCycleError(ConstraintViolationError):
    """部门树出现自引用或环"""
    pass


class AuditError(OrgAuthzError):
    """审计错误基类"""
    pass


class AuditWriteError(AuditError):
    """审计记录写入失败，必须中止整个变更"""
    pass


class ImmutableAuditLogError(AuditError):
    """审计记录不可修改、不可删除"""
    pass
