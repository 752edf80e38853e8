# -*- coding: utf-8 -*-
"""聊天核心的错误类型，以及把错误转换成统一响应体的视图装饰器"""
import logging
from functools import wraps

from rest_framework import status
from rest_framework.response import Response

logger = logging.getLogger(__name__)


def _result(code=0, message="success", data=None):
    return {"code": code, "message": message, "data": data}


class ChatError(Exception):
    code = status.HTTP_400_BAD_REQUEST
    default_message = "请求失败"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ChatError):
    """参数缺失或不合法，不做任何修改"""
    code = status.HTTP_400_BAD_REQUEST
    default_message = "参数不合法"


class ForbiddenError(ChatError):
    """没有有效连接或不是群成员"""
    code = status.HTTP_403_FORBIDDEN
    default_message = "无权操作"


class NotFoundError(ChatError):
    """不存在或已过期，两者对调用方不做区分"""
    code = status.HTTP_404_NOT_FOUND
    default_message = "不存在或已过期"


class ConflictError(ChatError):
    code = status.HTTP_409_CONFLICT
    default_message = "已被占用"


def chat_api(view_func):
    """视图返回 data（dict/list），装饰器包成 {code, message, data}；ChatError 按类型映射状态码"""
    @wraps(view_func)
    def wrapped(request, *args, **kwargs):
        try:
            data = view_func(request, *args, **kwargs)
        except ChatError as e:
            return Response(_result(e.code, e.message), status=e.code)
        except Exception:
            logger.exception("接口异常 %s %s", request.method, request.path)
            return Response(
                _result(500, "服务器内部错误"),
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return Response(_result(data=data))
    return wrapped


def require_text(value, field, max_length=None):
    """去掉首尾空白后非空，否则 ValidationError"""
    text = "" if value is None else str(value).strip()
    if not text:
        raise ValidationError(f"缺少 {field}")
    if max_length and len(text) > max_length:
        raise ValidationError(f"{field} 不能超过 {max_length} 个字符")
    return text
