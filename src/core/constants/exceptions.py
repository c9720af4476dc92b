"""
异常处理模块

本模块定义了项目中使用的所有自定义异常类。
遵循统一的异常处理规范，便于错误追踪和调试。

注意：检索与合并的主流程遵循“降级而非抛出”的原则，这里的大部分异常
只在内部抛出，并由对应的回退逻辑捕获（例如 LLM 合并失败回退到规则合并）。
"""

from typing import Optional, Dict, Any

from core.constants.errors import ErrorCode


class CoreException(Exception):
    """基础异常类

    所有自定义异常的基类，提供统一的异常处理接口。
    包含错误代码、错误消息和可选的详细信息。
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
    ):
        """
        初始化基础异常

        Args:
            code: 错误代码
            message: 错误消息
            details: 可选的详细信息字典
            original_exception: 原始异常对象
        """
        super().__init__(message)
        self.code = code.value if isinstance(code, ErrorCode) else code
        self.message = message
        self.details = details or {}
        self.original_exception = original_exception

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        details_str = f", details={self.details}" if self.details else ""
        original_str = (
            f", original={self.original_exception}" if self.original_exception else ""
        )
        return f"{self.__class__.__name__}(code='{self.code}', message='{self.message}'{details_str}{original_str})"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式，便于序列化"""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "exception_type": self.__class__.__name__,
        }


class ValidationException(CoreException):
    """参数校验异常（如 RetrieveRequest.limit < 1）"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(ErrorCode.INVALID_PARAMETER, message, details)
        self.field = field


class LLMResponseParseException(CoreException):
    """LLM 返回内容无法解析（非 JSON、缺字段、类型不符）"""

    def __init__(
        self,
        message: str,
        raw_response: Optional[str] = None,
        original_exception: Optional[Exception] = None,
    ):
        details = {}
        if raw_response is not None:
            details["raw_response"] = raw_response[:200]
        super().__init__(
            ErrorCode.LLM_RESPONSE_PARSE_ERROR, message, details, original_exception
        )


class ProfileMergeException(CoreException):
    """画像合并失败（仅由可回退的合并策略抛出）"""

    def __init__(
        self,
        message: str,
        strategy: Optional[str] = None,
        original_exception: Optional[Exception] = None,
    ):
        details = {"strategy": strategy} if strategy else {}
        super().__init__(
            ErrorCode.PROFILE_MERGE_FAILED, message, details, original_exception
        )
