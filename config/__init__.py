"""
统一配置模块

所有配置文件都在此目录下管理，提供统一的加载接口。

目录结构:
    config/
    ├── __init__.py              # 本文件，导出公共 API
    ├── loader.py                # 配置加载工具
    └── retrieval.yaml           # 检索参数（RRF、关键词打分、Agentic 轮次上限）

使用示例:
    from config import load_config

    config = load_config("retrieval")
    print(config.fusion.rrf_k)
"""

from config.loader import (
    ConfigDict,
    load_config,
    load_yaml,
    reload_config,
)

__all__ = [
    "ConfigDict",
    "load_config",
    "load_yaml",
    "reload_config",
]
