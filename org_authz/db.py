"""
Org Authz 数据库事务管理
"""

import logging
from contextlib import contextmanager

from django.db import DEFAULT_DB_ALIAS, connections, transaction

from .conf import authz_settings


logger = logging.getLogger(__name__)


@contextmanager
def snapshot(using=DEFAULT_DB_ALIAS):
    """
    读路径的一致性快照

    角色查询和部门树遍历必须在同一个快照内完成。
    最外层事务在 PostgreSQL 上切换为 REPEATABLE READ；
    已处于事务中时沿用外层事务的快照。
    """
    connection = connections[using]
    outermost = not connection.in_atomic_block

    with transaction.atomic(using=using):
        if outermost and connection.vendor == 'postgresql' and authz_settings.SNAPSHOT_ISOLATION:
            with connection.cursor() as cursor:
                cursor.execute("SET TRANSACTION ISOLATION LEVEL REPEATABLE READ")
        yield connection


@contextmanager
def mutation(using=DEFAULT_DB_ALIAS):
    """
    写路径事务：授权检查、写入、审计作为一个原子单元

    任何异常都会回滚整个事务后继续向上抛出。
    """
    try:
        with transaction.atomic(using=using):
            yield connections[using]
    except Exception:
        logger.debug("Mutation rolled back", exc_info=True)
        raise
