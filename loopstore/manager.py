"""记录存储管理器 —— 统一门面（Facade）。

RecordStore 是 loopstore 模块的统一入口，组合了所有子仓库，
提供两套 API：

1. **子仓库访问**（细粒度）：
   通过 ``store.users``、``store.sales`` 等属性直接访问子仓库。

2. **便捷方法**（粗粒度）：
   提供扁平化的方法（如 ``register_user()``、``get_commissions()``），
   适合上层界面代码直接调用。

RecordStore 应在应用启动时构造一次，并显式传递给所有使用方，
启动时必须先调用一次 ``seed()``，存储不会自动填充种子数据。
"""
from datetime import date
from typing import List, Optional, Union

from loguru import logger

from config.seed_data import SeedConfig, seed_config as default_seed_config
from config.settings import settings
from .business_repos import CommissionRepository, SaleRepository
from .connection import KeyValueConnection
from .entity_repos import (
    ClientRepository, PlanRepository, RepresentativeRepository,
    UserRepository, hash_password
)
from .models import (
    Client, Commission, ErrorResult, Plan, Representative, Sale, User,
    UserRole, WhatsAppChat
)
from .system_repos import (
    DEFAULT_CONTRACT_TEMPLATE, ContractTemplateRepository,
    NotificationRepository, UserSettingsRepository, WhatsAppRepository
)


class RecordStore:
    """记录存储管理器 —— 统一门面。

    Attributes:
        conn: 键值存储连接。
        users: 用户仓库。
        representatives: 销售代表仓库。
        clients: 客户仓库。
        plans: 方案仓库。
        sales: 销售（合同）仓库。
        commissions: 佣金视图。
        whatsapp: WhatsApp 会话仓库。
        contract_template: 合同模板仓库。
        notifications: 通知仓库。
        user_settings: 用户设置仓库。

    Example::

        store = RecordStore("sqlite:///data/loop.db")
        store.create_tables()
        store.seed()

        sale = store.sales.add({"rep_id": 1, "client_id": 2,
                                "plan": "Carro Novo", "value": 50000,
                                "sale_date": "09/07/2025"})
        commissions = store.get_commissions()
    """

    def __init__(self, database_url: Optional[str] = None,
                 quota_bytes: Optional[int] = None) -> None:
        """初始化记录存储。

        Args:
            database_url: 数据库连接URL。如果为None则使用settings配置。
            quota_bytes: 单个键的容量上限。如果为None则使用settings配置。
        """
        # 基础设施层
        self.conn = KeyValueConnection(database_url, quota_bytes)

        # 实体仓库
        self.representatives = RepresentativeRepository(self.conn)
        self.clients = ClientRepository(self.conn)
        self.plans = PlanRepository(self.conn)
        self.users = UserRepository(
            self.conn, self.clients, self.representatives
        )

        # 系统数据仓库
        self.user_settings = UserSettingsRepository(self.conn, self.users)
        self.notifications = NotificationRepository(
            self.conn, self.users, self.user_settings
        )
        self.whatsapp = WhatsAppRepository(self.conn, self.clients)
        self.contract_template = ContractTemplateRepository(
            self.conn, self.clients, self.representatives
        )

        # 业务记录仓库
        self.sales = SaleRepository(
            self.conn, self.users, self.clients,
            self.representatives, self.notifications
        )
        self.commissions = CommissionRepository(
            self.sales, self.representatives
        )

    # ================================================================
    # 基础设施方法
    # ================================================================

    def create_tables(self) -> None:
        """创建底层键值表（幂等操作）。"""
        self.conn.create_tables()

    @property
    def database_url(self) -> str:
        """数据库连接URL。"""
        return self.conn.database_url

    @property
    def engine(self):
        """SQLAlchemy 引擎对象。"""
        return self.conn.engine

    def close(self) -> None:
        """关闭数据库连接，释放所有资源。"""
        self.conn.close()

    # ================================================================
    # 种子数据
    # ================================================================

    def is_seeded(self) -> bool:
        return self.conn.has_item(settings.seed_marker_key)

    def seed(self, config: Optional[SeedConfig] = None,
             force: bool = False) -> bool:
        """写入初始数据（幂等）。

        若带版本号的标记键不存在，则一次性写入全部种子表并设置标记；
        标记已存在时不做任何操作。

        Args:
            config: 种子数据提供者（可选，默认使用 config.seed_data）。
            force: 忽略标记强制重新写入。

        Returns:
            本次是否成功写入（底层存储不可用时为 False）。
        """
        if self.is_seeded() and not force:
            logger.debug("Store already seeded, skipping")
            return False

        config = config or default_seed_config
        logger.info("Seeding record store...")

        users = [
            User(
                id=u["id"], name=u["name"], email=u["email"],
                password_hash=hash_password(u["password"]), role=u["role"]
            )
            for u in config.get_users()
        ]
        clients = [Client.model_validate(c) for c in config.get_clients()]
        client_names = {c.id: c.name for c in clients}
        sales = [
            Sale.model_validate({
                "client_name": client_names.get(s.get("client_id")),
                **s,
            })
            for s in config.get_sales()
        ]

        self.users.replace_all(users)
        self.representatives.replace_all([
            Representative.model_validate(r)
            for r in config.get_representatives()
        ])
        self.clients.replace_all(clients)
        self.sales.replace_all(sales)
        self.plans.replace_all(
            [Plan.model_validate(p) for p in config.get_plans()]
        )
        self.whatsapp.replace_all([
            WhatsAppChat.model_validate(c)
            for c in config.get_whatsapp_chats()
        ])
        self.notifications.replace_all([])
        self.contract_template.set(DEFAULT_CONTRACT_TEMPLATE)
        if not self.conn.write_json(settings.seed_marker_key, True):
            logger.error("Seeding failed, marker not written")
            return False

        logger.info(
            f"Seeded {len(users)} users, {len(clients)} clients, "
            f"{len(sales)} sales"
        )
        return True

    # ================================================================
    # 便捷方法
    # ================================================================

    def register_user(self, name: str, email: str, password: str,
                      role: UserRole) -> Union[User, ErrorResult]:
        """注册用户，详见 UserRepository.register。"""
        return self.users.register(name, email, password, role)

    def get_commissions(self) -> List[Commission]:
        """计算全部佣金，详见 CommissionRepository.get_commissions。"""
        return self.commissions.get_commissions()

    def mark_commission_paid(self, sale_id: int) -> Optional[Sale]:
        """标记佣金已支付，详见 CommissionRepository.mark_paid。"""
        return self.commissions.mark_paid(sale_id)

    def get_contract_template(self) -> str:
        return self.contract_template.get()

    def set_contract_template(self, template: str) -> None:
        self.contract_template.set(template)

    def render_contract(self, sale_id: int,
                        today: Optional[date] = None) -> Optional[str]:
        """为指定销售生成合同文本，销售不存在返回 None。"""
        sale = self.sales.get_by_id(sale_id)
        if sale is None:
            return None
        return self.contract_template.render(sale, today)

    def get_client_for_user(self, user: User) -> Optional[Client]:
        """解引用用户对应的客户档案，悬空引用返回 None。"""
        return self.clients.find_by_user_id(user.id)

    def get_representative_for_user(self, user: User
                                    ) -> Optional[Representative]:
        """解引用用户对应的代表档案，悬空引用返回 None。"""
        return self.representatives.find_by_user_id(user.id)
