"""全局配置管理

所有用户可配置项均通过 .env 文件或环境变量设置，运行时自动加载到此处。

使用方式：
    1. 手动创建 .env 文件，例如 ``DATABASE_URL=sqlite:///data/loop.db``
    2. 或直接导出环境变量后运行 ``python scripts/init_db.py``
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用配置 - 所有字段均可通过 .env 或环境变量覆盖"""

    # ========== 存储 ==========
    database_url: str = "sqlite:///data/loop.db"
    seed_marker_key: str = "seeded_v4"
    # 单个键的容量上限，模拟浏览器 localStorage 的配额
    storage_quota_bytes: int = 5 * 1024 * 1024

    # ========== 业务默认值 ==========
    default_commission_rate: float = 4.0
    default_rep_goal: float = 100000.0

    # ========== 日志 ==========
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# 全局配置实例
settings = Settings()
