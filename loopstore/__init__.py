"""Loop 记录存储模块

以字符串键值存储为底层的嵌入式记录存储，提供：
- 用户、代表、客户、方案、销售等表的增删改查
- 由销售与代表派生的佣金视图
- WhatsApp 会话、合同模板、通知与用户设置
- 一次性、幂等的种子数据写入

使用示例：
    ```python
    from loopstore import RecordStore

    store = RecordStore("sqlite:///data/loop.db")
    store.create_tables()
    store.seed()
    ```
"""
from .connection import KeyValueConnection, StorageQuotaExceededError
from .manager import RecordStore

__all__ = [
    "KeyValueConnection",
    "RecordStore",
    "StorageQuotaExceededError",
]
