"""
Org Authz 装饰器 - 视图级权限检查
"""

from functools import wraps
from django.http import JsonResponse
from .services import PermissionService
from .constants import ErrorCode


def require_permission(resource_type=None, resource_id=None, action=None, user_id="request.user.id"):
    """
    权限检查装饰器

    Args:
        resource_type: 资源类型，如 "department"、"form"
        resource_id: 资源ID的获取方式
            - 直接传值: "resource-uuid"
            - 从参数获取: "form_id" (函数参数)
            - 从对象获取: "form.id" (参数form的id属性)
        action: 操作类型: "view", "edit", "delete", "manage"
        user_id: 请求者ID的获取方式，默认取 request.user.id

    使用示例:
        @require_permission(
            resource_type="department",
            resource_id="department_id",
            action="edit"
        )
        def edit_department(request, department_id):
            # 有权限才执行这里
    """
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            requester_id = _resolve_value(user_id, request, *args, **kwargs)
            if not requester_id:
                return JsonResponse({
                    'error': 'Authentication required',
                    'code': 'USER_ID_MISSING'
                }, status=401)

            target_id = _resolve_value(resource_id, request, *args, **kwargs)

            # 资源ID缺失与资源不存在一样按拒绝处理，不泄露资源是否存在
            permission_service = PermissionService()
            if not target_id or not permission_service.has_permission(
                resource_type, target_id, action, requester_id
            ):
                return JsonResponse({
                    'error': f'Permission denied for action: {action}',
                    'code': ErrorCode.PERMISSION_DENIED
                }, status=403)

            return view_func(request, *args, **kwargs)

        return wrapper
    return decorator


def _resolve_value(value, request, *args, **kwargs):
    """
    解析参数值，支持多种来源

    Args:
        value: 要解析的值，可以是字符串表达式或直接值
        request: Django request对象
        *args: 函数位置参数
        **kwargs: 函数关键字参数

    Returns:
        解析后的实际值
    """
    # 如果直接传值（不是字符串），直接返回
    if not isinstance(value, str):
        return value

    if value.startswith('request.'):
        # 从request对象获取，如 "request.user.id"
        return _get_nested_attr(request, value[len('request.'):])

    elif '.' in value:
        # 从参数对象获取，如 "form.id"
        obj_name, attr_path = value.split('.', 1)
        if obj_name in kwargs:
            return _get_nested_attr(kwargs[obj_name], attr_path)
        return None

    elif value in kwargs:
        # 从函数参数直接获取
        return kwargs[value]

    else:
        # 静态值，直接返回
        return value


def _get_nested_attr(obj, attr_path):
    """
    获取嵌套属性值

    Args:
        obj: 对象
        attr_path: 属性路径，如 "user.id" 或 "form.organization.id"

    Returns:
        属性值，不存在时返回 None
    """
    current = obj
    for attr in attr_path.split('.'):
        if isinstance(current, dict):
            current = current.get(attr)
        else:
            current = getattr(current, attr, None)
        if current is None:
            return None
    return current


# 便捷装饰器别名
def require_view_permission(resource_type=None, resource_id=None):
    """查看权限检查"""
    return require_permission(resource_type=resource_type, resource_id=resource_id, action='view')


def require_edit_permission(resource_type=None, resource_id=None):
    """编辑权限检查"""
    return require_permission(resource_type=resource_type, resource_id=resource_id, action='edit')


def require_delete_permission(resource_type=None, resource_id=None):
    """删除权限检查"""
    return require_permission(resource_type=resource_type, resource_id=resource_id, action='delete')


def require_manage_permission(resource_type=None, resource_id=None):
    """管理权限检查"""
    return require_permission(resource_type=resource_type, resource_id=resource_id, action='manage')
