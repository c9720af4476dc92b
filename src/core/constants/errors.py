"""
错误代码定义

所有自定义异常都携带一个 ErrorCode，便于在日志和序列化结果中定位问题来源。
"""

from enum import Enum


class ErrorCode(str, Enum):
    """错误代码枚举"""

    # 通用
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    INVALID_PARAMETER = "INVALID_PARAMETER"

    # LLM 输出解析
    LLM_RESPONSE_PARSE_ERROR = "LLM_RESPONSE_PARSE_ERROR"
    LLM_EMPTY_RESPONSE = "LLM_EMPTY_RESPONSE"

    # 画像合并
    PROFILE_MERGE_FAILED = "PROFILE_MERGE_FAILED"
