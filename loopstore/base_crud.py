"""通用表操作 —— 所有表仓库的基类。

每张表对应键值存储中的一个键，值为记录的 JSON 数组。
每次操作都是"读取整表 → 内存修改 → 写回整表"，没有事务，
也没有并发控制：两个并发写入者可能算出相同的下一个 ID 并互相覆盖。
"""
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

from loguru import logger
from pydantic import ValidationError

from .connection import KeyValueConnection
from .models import Record

RecordT = TypeVar("RecordT", bound=Record)


class TableCRUD(Generic[RecordT]):
    """单表的通用增删改查。

    Attributes:
        conn: 键值存储连接。
        key: 表在键值存储中的键名。
        model: 记录模型类。
        prepend: 新记录是否插入表头（最新在前）。
    """

    def __init__(self, conn: KeyValueConnection, key: str,
                 model: Type[RecordT], prepend: bool = False) -> None:
        self.conn = conn
        self.key = key
        self.model = model
        self.prepend = prepend

    @staticmethod
    def next_id(items: List[Any]) -> int:
        """计算下一个 ID：现有最大 ID + 1，空表为 1。"""
        if not items:
            return 1
        return max(item.id for item in items) + 1

    # ================================================================
    # 整表读写
    # ================================================================

    def _load(self) -> List[RecordT]:
        rows = self.conn.read_json(self.key, [])
        try:
            return [self.model.model_validate(row) for row in rows]
        except (ValidationError, TypeError) as e:
            logger.error(f"Corrupt records in table '{self.key}': {e}")
            return []

    def _save(self, items: List[RecordT]) -> bool:
        return self.conn.write_json(
            self.key, [item.model_dump(mode="json") for item in items]
        )

    def replace_all(self, items: List[RecordT]) -> bool:
        """用给定记录整体替换表内容（用于种子数据）。"""
        return self._save(items)

    # ================================================================
    # 查询
    # ================================================================

    def get_all(self) -> List[RecordT]:
        """按存储顺序返回全部记录，表不存在时返回空列表。"""
        return self._load()

    def get_by_id(self, record_id: int) -> Optional[RecordT]:
        for item in self._load():
            if item.id == record_id:
                return item
        return None

    def filter(self, predicate: Optional[Callable[[RecordT], bool]] = None,
               **criteria: Any) -> List[RecordT]:
        """按字段等值条件（和可选的谓词函数）过滤记录。

        Args:
            predicate: 额外的过滤函数（可选）。
            **criteria: 字段名 = 期望值。

        Returns:
            匹配的记录列表，保持存储顺序。
        """
        return [
            item for item in self._load()
            if all(getattr(item, k) == v for k, v in criteria.items())
            and (predicate is None or predicate(item))
        ]

    def find_first(self, predicate: Optional[Callable[[RecordT], bool]] = None,
                   **criteria: Any) -> Optional[RecordT]:
        """返回第一条匹配记录，不存在返回 None。"""
        matches = self.filter(predicate, **criteria)
        return matches[0] if matches else None

    def count(self) -> int:
        return len(self._load())

    # ================================================================
    # 写入
    # ================================================================

    def add(self, data: Dict[str, Any]) -> RecordT:
        """新增记录。

        分配新 ID，校验数据后写入表头或表尾，并整表写回存储。

        Args:
            data: 不含 ``id`` 的记录字段字典。

        Returns:
            新创建的完整记录。

        Raises:
            pydantic.ValidationError: 记录字段不合法。
        """
        items = self._load()
        fields = {k: v for k, v in data.items() if k != "id"}
        record = self.model.model_validate(
            {**fields, "id": self.next_id(items)}
        )
        items = [record] + items if self.prepend else items + [record]
        self._save(items)
        logger.debug(f"Added record {record.id} to '{self.key}'")
        return record

    def update_by_id(self, record_id: int,
                     **changes: Any) -> Optional[RecordT]:
        """按 ID 浅合并更新记录。

        补丁中的字段覆盖原值，其余字段保持不变；``id`` 不可修改。

        Args:
            record_id: 记录 ID。
            **changes: 要覆盖的字段。

        Returns:
            合并后的记录；记录不存在时返回 None 且不写入。

        Raises:
            pydantic.ValidationError: 合并后的记录不合法。
        """
        if "id" in changes:
            logger.warning(f"Ignoring attempt to change id of '{self.key}' #{record_id}")
            changes = {k: v for k, v in changes.items() if k != "id"}

        items = self._load()
        for index, item in enumerate(items):
            if item.id == record_id:
                merged = self.model.model_validate(
                    {**item.model_dump(), **changes}
                )
                items[index] = merged
                self._save(items)
                return merged

        logger.debug(f"Update skipped, '{self.key}' #{record_id} not found")
        return None

    def delete_by_id(self, record_id: int) -> None:
        """按 ID 删除记录，不存在时无操作，不级联删除关联数据。"""
        items = self._load()
        remaining = [item for item in items if item.id != record_id]
        if len(remaining) != len(items):
            self._save(remaining)
