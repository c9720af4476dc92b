"""
配置加载工具

支持:
1. YAML 配置文件加载
2. 环境变量替换 (${VAR} 或 ${VAR:default})
3. 点访问 (config.fusion.rrf_k)
4. 配置缓存（避免重复加载）

使用示例:
    from config import load_config

    config = load_config("retrieval")
    print(config.fusion.rrf_k)                    # 60
    print(config.get("agentic.combined_total"))   # 40
"""
import os
import re
import yaml
from pathlib import Path
from typing import Any, Dict, Union
from functools import lru_cache


_ENV_PATTERN = re.compile(r'\$\{([^:}]+)(?::([^}]*))?\}')


class ConfigDict:
    """
    支持点访问的配置字典

    Examples:
        config = ConfigDict({"fusion": {"rrf_k": 60}})
        config.fusion.rrf_k           # -> 60
        config["fusion"]["rrf_k"]     # -> 60
        config.get("fusion.rrf_k")    # -> 60
    """

    def __init__(self, data: Dict[str, Any]):
        self._data = data
        for key, value in data.items():
            setattr(self, key, ConfigDict(value) if isinstance(value, dict) else value)

    def __getitem__(self, key: str) -> Any:
        return getattr(self, key)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __iter__(self):
        return iter(self._data)

    def __repr__(self) -> str:
        return f"ConfigDict({self._data})"

    def get(self, key: str, default: Any = None) -> Any:
        """点分隔路径访问，任一层缺失时返回 default"""
        value: Any = self
        for part in key.split("."):
            if not isinstance(value, ConfigDict) or part not in value:
                return default
            value = getattr(value, part)
        return value

    def to_dict(self) -> Dict[str, Any]:
        """转换回普通字典"""
        return self._data

    def items(self):
        return self._data.items()

    def keys(self):
        return self._data.keys()


def _get_config_dir() -> Path:
    return Path(__file__).parent


def _replace_env_vars(obj: Any) -> Any:
    """
    递归替换配置中的环境变量

    - ${VAR_NAME}: 环境变量不存在时保持原样
    - ${VAR_NAME:default}: 不存在时使用默认值

    整个值发生替换后会尝试转换类型（int / float / bool）。
    """
    if isinstance(obj, dict):
        return {key: _replace_env_vars(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_replace_env_vars(item) for item in obj]
    if not isinstance(obj, str):
        return obj

    def replacer(match: re.Match) -> str:
        value = os.environ.get(match.group(1))
        if value is not None:
            return value
        if match.group(2) is not None:
            return match.group(2)
        return match.group(0)

    result = _ENV_PATTERN.sub(replacer, obj)
    if result != obj:
        return _try_convert_type(result)
    return result


def _try_convert_type(value: str) -> Union[str, int, float, bool]:
    """把替换后的字符串转换为合适的类型

    先尝试数值（"0" / "1" 保持为数字），只有纯文本布尔值才转为 bool。
    """
    try:
        float_val = float(value)
        if '.' not in value and float_val == int(float_val):
            return int(float_val)
        return float_val
    except ValueError:
        pass

    lowered = value.lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    return value


def _find_config_file(name: str) -> Path:
    """在 config 目录下按 name.yaml / name.yml / name/config.yaml 顺序查找"""
    config_dir = _get_config_dir()
    candidates = [
        config_dir / f"{name}.yaml",
        config_dir / f"{name}.yml",
        config_dir / name / "config.yaml",
    ]

    for path in candidates:
        if path.exists():
            return path

    raise FileNotFoundError(
        f"Config file not found: {name}\n"
        f"Searched paths:\n" + "\n".join(f"  - {p}" for p in candidates)
    )


def load_yaml(file_path: Union[str, Path]) -> Dict[str, Any]:
    """
    加载 YAML 文件并替换环境变量（原始字典格式）

    空文件返回空字典。
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f) or {}

    return _replace_env_vars(config)


@lru_cache(maxsize=32)
def load_config(name: str) -> ConfigDict:
    """
    加载配置文件，返回支持点访问的配置对象

    Args:
        name: 配置名称，如 "retrieval" -> config/retrieval.yaml

    Returns:
        ConfigDict 对象
    """
    config_path = _find_config_file(name)
    return ConfigDict(load_yaml(config_path))


def reload_config(name: str) -> ConfigDict:
    """清除缓存后重新加载（环境变量变化后使用）"""
    load_config.cache_clear()
    return load_config(name)
