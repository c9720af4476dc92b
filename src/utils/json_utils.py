"""
LLM 输出中的 JSON 提取工具

模型经常在 JSON 前后附加说明文字或代码块标记，这里只截取
第一个开括号到最后一个闭括号之间的内容再解析。
"""

import json
from typing import Any, Dict, List

from core.constants.exceptions import LLMResponseParseException


def _extract(response: str, open_char: str, close_char: str) -> Any:
    if not response:
        raise LLMResponseParseException("Empty response", raw_response=response or "")

    start_idx = response.find(open_char)
    end_idx = response.rfind(close_char) + 1
    if start_idx == -1 or end_idx == 0 or end_idx <= start_idx:
        raise LLMResponseParseException(
            f"No JSON {'object' if open_char == '{' else 'array'} found in response",
            raw_response=response,
        )

    try:
        return json.loads(response[start_idx:end_idx])
    except json.JSONDecodeError as e:
        raise LLMResponseParseException(
            f"Invalid JSON: {e}", raw_response=response, original_exception=e
        ) from e


def extract_json_object(response: str) -> Dict[str, Any]:
    """提取 JSON 对象

    Raises:
        LLMResponseParseException: 找不到对象、JSON 不合法或根节点不是对象
    """
    result = _extract(response, "{", "}")
    if not isinstance(result, dict):
        raise LLMResponseParseException("JSON root is not an object", raw_response=response)
    return result


def extract_json_array(response: str) -> List[Any]:
    """提取 JSON 数组

    Raises:
        LLMResponseParseException: 找不到数组、JSON 不合法或根节点不是数组
    """
    result = _extract(response, "[", "]")
    if not isinstance(result, list):
        raise LLMResponseParseException("JSON root is not an array", raw_response=response)
    return result
