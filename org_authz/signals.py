"""
Org Authz 信号处理

成员记录除了经由 MembershipStore 删除，还会随用户或组织的删除被级联删除。
这里为后一种情况补写 DELETE 审计，审计失败时整个删除回滚。
"""

import logging

from django.db.models.signals import post_delete
from django.dispatch import receiver

from .models import OrganizationMember
from .services.audit_service import AuditLogger, current_actor


logger = logging.getLogger(__name__)


@receiver(post_delete, sender=OrganizationMember)
def audit_membership_delete(sender, instance, **kwargs):
    """级联删除的成员记录写审计"""
    if getattr(instance, '_audited', False):
        return

    actor = current_actor()
    AuditLogger().record_delete(instance, actor)
    logger.info(
        f"Membership removed by cascade: user={instance.user_id}, "
        f"organization={instance.organization_id}, actor={actor}"
    )
