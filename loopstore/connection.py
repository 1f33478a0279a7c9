"""键值存储连接与基础设施管理。

本模块负责记录存储的底层基础设施，包括：
- 数据库引擎创建（SQLite 文件库或内存库，以及其他同步 SQLAlchemy URL）
- 会话（Session）管理与表创建
- 字符串键值的读写（对应浏览器的 localStorage）
- JSON 边界：读写失败只记录日志，读取降级为默认值，写入被丢弃

本模块不包含任何业务逻辑。
"""
import json
import os
from typing import Any, List, Optional

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config.settings import settings
from .models import Base, KeyValueEntry


class StorageQuotaExceededError(Exception):
    """写入的值超过了单个键的容量上限。"""

    def __init__(self, key: str, size: int, quota: int) -> None:
        super().__init__(
            f"Value for key '{key}' is {size} bytes, quota is {quota} bytes"
        )
        self.key = key
        self.size = size
        self.quota = quota


class KeyValueConnection:
    """键值存储连接管理器。

    以一张 ``kv_entries`` 表模拟同步、按字符串键寻址的持久化存储。
    每个键保存一个 JSON 字符串，每次写入都是整值覆盖。

    Attributes:
        database_url: 数据库连接URL。
        engine: SQLAlchemy 引擎对象。
        SessionLocal: 会话工厂。
        quota_bytes: 单个值的容量上限（字节）。

    Example:
        ```python
        # SQLite 文件库
        conn = KeyValueConnection("sqlite:///data/loop.db")

        # 内存库（进程退出即丢失）
        conn = KeyValueConnection("sqlite://")
        ```
    """

    def __init__(self, database_url: Optional[str] = None,
                 quota_bytes: Optional[int] = None) -> None:
        """初始化键值存储连接。

        Args:
            database_url: 数据库连接URL，如果为None则使用settings中的配置。
            quota_bytes: 单个值的容量上限，如果为None则使用settings中的配置。
        """
        self.database_url: str = database_url or settings.database_url
        self.quota_bytes: int = (
            quota_bytes if quota_bytes is not None
            else settings.storage_quota_bytes
        )

        url = make_url(self.database_url)
        if url.get_backend_name() == "sqlite":
            if url.database and url.database != ":memory:":
                directory = os.path.dirname(url.database)
                if directory:
                    os.makedirs(directory, exist_ok=True)
                self.engine = create_engine(
                    self.database_url,
                    echo=False,
                    connect_args={"check_same_thread": False}
                )
            else:
                # 内存库需要共享同一个连接，否则每个会话看到的都是空库
                self.engine = create_engine(
                    self.database_url,
                    echo=False,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool
                )
        else:
            self.engine = create_engine(self.database_url, echo=False)

        self.SessionLocal = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False
        )

    def create_tables(self) -> None:
        """创建键值存储表（幂等操作）。"""
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        """获取数据库会话。"""
        return self.SessionLocal()

    # ================================================================
    # 原始字符串读写
    # ================================================================

    def get_item(self, key: str) -> Optional[str]:
        """读取键对应的原始字符串，键不存在返回 None。"""
        with self.get_session() as session:
            entry = session.get(KeyValueEntry, key)
            return entry.value if entry else None

    def set_item(self, key: str, value: str) -> None:
        """写入键对应的原始字符串（覆盖已有值）。

        Raises:
            StorageQuotaExceededError: 值超过容量上限。
        """
        size = len(value.encode("utf-8"))
        if size > self.quota_bytes:
            raise StorageQuotaExceededError(key, size, self.quota_bytes)

        with self.get_session() as session:
            session.merge(KeyValueEntry(key=key, value=value))
            session.commit()

    def remove_item(self, key: str) -> None:
        """删除键，不存在时无操作。"""
        with self.get_session() as session:
            session.query(KeyValueEntry).filter(
                KeyValueEntry.key == key
            ).delete()
            session.commit()

    def has_item(self, key: str) -> bool:
        """判断键是否存在，底层读取失败时视为不存在。"""
        try:
            return self.get_item(key) is not None
        except SQLAlchemyError as e:
            logger.error(f"Failed to check key '{key}' in store: {e}")
            return False

    def keys(self) -> List[str]:
        """列出所有键，底层读取失败时返回空列表。"""
        try:
            with self.get_session() as session:
                return [
                    row.key for row in
                    session.query(KeyValueEntry).order_by(KeyValueEntry.key)
                ]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list keys in store: {e}")
            return []

    # ================================================================
    # JSON 边界
    # ================================================================

    def read_json(self, key: str, default: Any) -> Any:
        """读取并解析 JSON 值。

        键不存在、值损坏或底层读取失败时返回 ``default``，错误只记录日志。

        Args:
            key: 键名。
            default: 默认值。

        Returns:
            解析后的值或默认值。
        """
        try:
            raw = self.get_item(key)
            return json.loads(raw) if raw else default
        except (ValueError, SQLAlchemyError) as e:
            logger.error(f"Failed to read key '{key}' from store: {e}")
            return default

    def write_json(self, key: str, value: Any) -> bool:
        """序列化并写入 JSON 值。

        序列化失败、超出容量或底层写入失败时丢弃本次写入，错误只记录日志。

        Returns:
            是否写入成功。
        """
        try:
            self.set_item(key, json.dumps(value, ensure_ascii=False))
            return True
        except (TypeError, ValueError, StorageQuotaExceededError,
                SQLAlchemyError) as e:
            logger.error(f"Failed to write key '{key}' to store: {e}")
            return False

    def close(self) -> None:
        """关闭数据库连接，释放引擎资源。"""
        if self.engine is not None:
            self.engine.dispose()
