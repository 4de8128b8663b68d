"""
Org Authz

组织级授权引擎：判断请求者能否对资源执行动作，并枚举用户的全部授权。

核心设计原则：
- 失败即拒绝: 无法解析的输入、不存在的资源一律返回 False，从不抛出异常
- 部门管理权只向下传递: 上级部门经理管辖所有下级部门
- 一致性快照: 角色查询与部门树遍历在同一事务快照内完成
- 审计不可缺失: 每次成员变更都在同一事务内写入审计，审计失败则整体回滚
"""

__version__ = "1.0.0"
__author__ = "Org Authz Team"
__description__ = "组织级授权引擎"
