"""业务记录仓库 —— 销售（合同）与佣金的数据访问层。

销售是日常经营产生的交易数据；佣金是销售的派生视图，
每次读取时由"已批准的销售 × 代表佣金比例"重新计算，从不单独持久化。
标记佣金已支付只会修改对应销售的 ``commission_paid`` 标志。
"""
from collections import defaultdict
from typing import Any, Dict, List, Optional

from loguru import logger

from .base_crud import TableCRUD
from .connection import KeyValueConnection
from .entity_repos import (
    ClientRepository, RepresentativeRepository, UserRepository
)
from .models import Commission, CommissionStatus, Sale, SaleStatus
from .system_repos import NotificationRepository


class SaleRepository(TableCRUD[Sale]):
    """销售（合同）仓库。

    新销售插入表头（最新在前），状态固定为待审核、佣金未支付。
    新销售会通知管理员；状态变化会通知对应代表。
    """

    def __init__(self, conn: KeyValueConnection,
                 user_repo: UserRepository,
                 client_repo: ClientRepository,
                 rep_repo: RepresentativeRepository,
                 notification_repo: NotificationRepository) -> None:
        super().__init__(conn, "sales", Sale, prepend=True)
        self._users = user_repo
        self._clients = client_repo
        self._reps = rep_repo
        self._notifications = notification_repo

    def _client_display_name(self, sale: Sale) -> str:
        if sale.client_id is not None:
            client = self._clients.get_by_id(sale.client_id)
            if client:
                return client.name
        return sale.client_name or "cliente desconhecido"

    def add(self, data: Dict[str, Any]) -> Sale:
        """新增销售。

        Args:
            data: 销售字段字典，支持以下键：
                - rep_id: 代表 ID（必填）
                - client_id: 客户 ID（推荐）
                - client_name: 客户名称（可选，缺省时从客户表补全）
                - plan: 方案名称（必填）
                - value: 金额（必填）
                - sale_date: 日期，date 对象或 dd/mm/yyyy 字符串（必填）

        Returns:
            新创建的销售记录。
        """
        data = dict(data)
        for key in ("status", "commission_paid", "rejection_reason"):
            data.pop(key, None)
        if data.get("client_id") is not None and not data.get("client_name"):
            client = self._clients.get_by_id(data["client_id"])
            if client:
                data["client_name"] = client.name

        sale = super().add({
            **data,
            "status": SaleStatus.PENDING,
            "commission_paid": False,
        })

        admins = self._users.get_admins()
        if admins:
            self._notifications.notify(
                admins[0].id,
                f"Novo contrato de {self._client_display_name(sale)} "
                f"aguardando sua análise.",
                link="contracts"
            )
        return sale

    def update_by_id(self, record_id: int, **changes: Any) -> Optional[Sale]:
        """更新销售，状态发生变化时通知代表。"""
        original = self.get_by_id(record_id)
        updated = super().update_by_id(record_id, **changes)
        if updated is None or original is None:
            return updated

        if "status" in changes and original.status != updated.status:
            rep = self._reps.get_by_id(updated.rep_id)
            if rep and rep.user_id:
                name = self._client_display_name(updated)
                if updated.status == SaleStatus.APPROVED:
                    message = f"Sua venda para {name} foi APROVADA!"
                else:
                    message = f"Sua venda para {name} foi RECUSADA."
                self._notifications.notify(rep.user_id, message, link="sales")
        return updated

    def approve(self, sale_id: int) -> Optional[Sale]:
        return self.update_by_id(sale_id, status=SaleStatus.APPROVED)

    def reject(self, sale_id: int, reason: str) -> Optional[Sale]:
        return self.update_by_id(
            sale_id, status=SaleStatus.REJECTED, rejection_reason=reason
        )

    def get_by_rep(self, rep_id: int) -> List[Sale]:
        return self.filter(rep_id=rep_id)

    def get_by_client(self, client_id: int) -> List[Sale]:
        return self.filter(client_id=client_id)

    def get_approved(self) -> List[Sale]:
        return self.filter(status=SaleStatus.APPROVED)


class CommissionRepository:
    """佣金视图。

    纯函数式派生：相同的销售与代表数据总是得到相同的佣金列表，
    每一笔已批准的销售恰好对应一条佣金。
    """

    def __init__(self, sale_repo: SaleRepository,
                 rep_repo: RepresentativeRepository) -> None:
        self._sales = sale_repo
        self._reps = rep_repo

    def get_commissions(self) -> List[Commission]:
        """计算全部佣金。

        代表不存在时佣金为 0，代表名称为 "N/A"。

        Returns:
            佣金列表，顺序与销售表一致。
        """
        reps = {rep.id: rep for rep in self._reps.get_all()}
        commissions = []
        for sale in self._sales.get_approved():
            rep = reps.get(sale.rep_id)
            commissions.append(Commission(
                id=sale.id,
                rep_id=sale.rep_id,
                rep_name=rep.name if rep else "N/A",
                period=sale.sale_date.strftime("%m/%Y"),
                sales_value=sale.value,
                commission_value=(
                    sale.value * rep.commission_rate / 100 if rep else 0
                ),
                status=(
                    CommissionStatus.PAID if sale.commission_paid
                    else CommissionStatus.PENDING
                ),
            ))
        return commissions

    def mark_paid(self, sale_id: int) -> Optional[Sale]:
        """把销售对应的佣金标记为已支付。

        Returns:
            更新后的销售；销售不存在或尚未批准时返回 None，不做修改。
        """
        sale = self._sales.get_by_id(sale_id)
        if sale is None or sale.status != SaleStatus.APPROVED:
            logger.warning(f"Cannot mark commission paid for sale {sale_id}: not an approved sale")
            return None
        return self._sales.update_by_id(sale_id, commission_paid=True)

    def summarize_by_rep(self) -> Dict[int, Dict[str, Any]]:
        """按代表汇总佣金。

        Returns:
            以代表 ID 为键的字典，包含 rep_name、sales_value、
            total、paid、pending 等字段。
        """
        summary: Dict[int, Dict[str, Any]] = defaultdict(
            lambda: {"rep_name": "", "sales_value": 0.0, "total": 0.0,
                     "paid": 0.0, "pending": 0.0}
        )
        for commission in self.get_commissions():
            entry = summary[commission.rep_id]
            entry["rep_name"] = commission.rep_name
            entry["sales_value"] += commission.sales_value
            entry["total"] += commission.commission_value
            if commission.status == CommissionStatus.PAID:
                entry["paid"] += commission.commission_value
            else:
                entry["pending"] += commission.commission_value
        return dict(summary)
