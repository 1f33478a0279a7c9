"""系统数据仓库 —— 系统级数据的数据访问层。

管理系统辅助数据（WhatsApp 会话、合同模板、通知、用户设置），
这些数据用于客户沟通、合同生成和站内提醒。
"""
import random
from datetime import date
from typing import Dict, List, Optional, Tuple

from loguru import logger
from pydantic import ValidationError

from .base_crud import TableCRUD
from .connection import KeyValueConnection
from .entity_repos import (
    ClientRepository, RepresentativeRepository, UserRepository
)
from .models import (
    Client, ClientStatus, Notification, NotificationSettings,
    ProfileSettings, Sale, Sender, User, UserRole, UserSettings,
    WhatsAppChat, WhatsAppMessage, utcnow
)

DEFAULT_CONTRACT_TEMPLATE = """CONTRATO DE ADESÃO A GRUPO DE CONSÓRCIO

CONTRATANTE:
Nome: {{CLIENT_NAME}}
CPF/CNPJ: {{CLIENT_DOCUMENT}}
Endereço: {{CLIENT_ADDRESS}}
Email: {{CLIENT_EMAIL}}
Telefone: {{CLIENT_PHONE}}

REPRESENTANTE: {{REP_NAME}}

----------------------------------------------------

Pelo presente instrumento, a CONTRATANTE adere ao grupo de consórcio para aquisição do seguinte bem ou serviço, sob as condições abaixo:

PLANO: {{SALE_PLAN_NAME}}
VALOR DO CRÉDITO: R$ {{SALE_VALUE}}
DATA DA VENDA: {{SALE_DATE}}

Este contrato é regido pelas cláusulas e condições gerais do regulamento do grupo de consórcio, que a CONTRATANTE declara ter lido e concordado na íntegra.

A contemplação ocorrerá por sorteio ou lance, conforme as regras da administradora.

Local e Data: São Paulo, {{TODAY_DATE}}.


________________________________________
{{CLIENT_NAME}}
(Contratante)

________________________________________
Loop Soluções Financeiras
(Administradora)
"""

# 模拟客户来信时使用的问题模板
SIMULATED_QUERIES = [
    "Olá, qual o status do meu plano {plan}?",
    "Quando vence minha próxima parcela?",
    "Gostaria de saber o saldo devedor do meu consórcio.",
    "Como faço para ofertar um lance?",
    "Perdi a data de pagamento, e agora?",
]


def format_brl(value: float) -> str:
    """按巴西格式渲染金额，例如 1234.5 -> 1.234,50"""
    text = f"{value:,.2f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


class WhatsAppRepository(TableCRUD[WhatsAppChat]):
    """WhatsApp 会话仓库。

    每个客户一个会话，消息只追加不修改。
    消息 ID 在会话内按 max+1 规则分配。
    """

    def __init__(self, conn: KeyValueConnection,
                 client_repo: ClientRepository) -> None:
        super().__init__(conn, "whatsapp_chats", WhatsAppChat, prepend=True)
        self._clients = client_repo

    def get_chats(self) -> List[WhatsAppChat]:
        """按最近消息时间倒序返回全部会话。"""
        return sorted(
            self.get_all(),
            key=lambda chat: chat.last_message_timestamp,
            reverse=True
        )

    def get_chat_for_client(self, client_id: int) -> Optional[WhatsAppChat]:
        return self.find_first(client_id=client_id)

    def open_chat(self, client: Client) -> WhatsAppChat:
        """获取客户的会话，不存在则新建一个空会话。"""
        chat = self.get_chat_for_client(client.id)
        if chat is not None:
            return chat
        return self.add({
            "client_id": client.id,
            "client_name": client.name,
            "client_phone": client.phone,
            "messages": [],
        })

    def append_message(self, chat_id: int, sender: Sender,
                       text: str) -> Optional[WhatsAppChat]:
        """向会话追加一条消息。

        Args:
            chat_id: 会话 ID。
            sender: 发送方。
            text: 消息内容。

        Returns:
            更新后的会话；会话不存在返回 None。
        """
        chat = self.get_by_id(chat_id)
        if chat is None:
            logger.warning(f"Chat {chat_id} not found, message dropped")
            return None

        timestamp = utcnow()
        message = WhatsAppMessage(
            id=self.next_id(chat.messages),
            sender=sender,
            text=text,
            timestamp=timestamp
        )
        return self.update_by_id(
            chat_id,
            messages=chat.messages + [message],
            last_message_timestamp=timestamp
        )

    def simulate_incoming(self, rng: Optional[random.Random] = None
                          ) -> Optional[Tuple[WhatsAppChat, WhatsAppMessage]]:
        """模拟一位随机的在约客户发来消息。

        客户没有会话时自动新建。

        Args:
            rng: 随机数生成器（可选，便于测试时固定结果）。

        Returns:
            (更新后的会话, 新消息)；没有在约客户时返回 None。
        """
        rng = rng or random.Random()
        clients = self._clients.filter(status=ClientStatus.ACTIVE)
        if not clients:
            return None

        client = rng.choice(clients)
        text = rng.choice(SIMULATED_QUERIES).format(plan=client.plan)
        chat = self.open_chat(client)
        updated = self.append_message(chat.id, Sender.CLIENT, text)
        if updated is None:
            return None
        return updated, updated.messages[-1]


class ContractTemplateRepository:
    """合同模板仓库（单例字符串）。"""

    KEY = "contract_template"

    def __init__(self, conn: KeyValueConnection,
                 client_repo: ClientRepository,
                 rep_repo: RepresentativeRepository) -> None:
        self.conn = conn
        self._clients = client_repo
        self._reps = rep_repo

    def get(self) -> str:
        """获取合同模板，未设置或存储值不是字符串时返回默认模板。"""
        template = self.conn.read_json(self.KEY, DEFAULT_CONTRACT_TEMPLATE)
        if not isinstance(template, str):
            logger.warning(f"Stored '{self.KEY}' is not a string, using default")
            return DEFAULT_CONTRACT_TEMPLATE
        return template

    def set(self, template: str) -> None:
        self.conn.write_json(self.KEY, template)

    def render(self, sale: Sale, today: Optional[date] = None) -> str:
        """用销售及其客户、代表的数据填充合同模板。

        悬空的客户或代表引用以空字符串填充。

        Args:
            sale: 销售记录。
            today: 合同日期（可选，默认今天）。

        Returns:
            填充后的合同文本。
        """
        today = today or date.today()
        client = (
            self._clients.get_by_id(sale.client_id)
            if sale.client_id is not None else None
        )
        rep = self._reps.get_by_id(sale.rep_id)

        values = {
            "CLIENT_NAME": client.name if client else (sale.client_name or ""),
            "CLIENT_DOCUMENT": (client.document or "") if client else "",
            "CLIENT_ADDRESS": (client.address or "") if client else "",
            "CLIENT_EMAIL": (client.email or "") if client else "",
            "CLIENT_PHONE": client.phone if client else "",
            "REP_NAME": rep.name if rep else "",
            "SALE_PLAN_NAME": sale.plan,
            "SALE_VALUE": format_brl(sale.value),
            "SALE_DATE": sale.sale_date.strftime("%d/%m/%Y"),
            "TODAY_DATE": today.strftime("%d/%m/%Y"),
        }

        text = self.get()
        for name, value in values.items():
            text = text.replace("{{" + name + "}}", value)
        return text


class UserSettingsRepository:
    """用户设置仓库。

    所有用户的设置保存在同一个 JSON 对象中，以用户 ID 为键。
    """

    KEY = "user_settings"

    def __init__(self, conn: KeyValueConnection,
                 user_repo: UserRepository) -> None:
        self.conn = conn
        self._users = user_repo

    def defaults_for(self, user: Optional[User]) -> UserSettings:
        """根据用户信息生成默认设置，代表默认开启销售邮件。"""
        email = user.email if user else ""
        return UserSettings(
            profile=ProfileSettings(
                name=user.name if user else "",
                email=email,
                avatar=f"https://i.pravatar.cc/150?u={email}"
            ),
            notifications=NotificationSettings(
                email_news=True,
                email_sales=bool(user and user.role == UserRole.REPRESENTATIVE),
                app_updates=True
            )
        )

    def _load_all(self) -> Dict[str, dict]:
        stored = self.conn.read_json(self.KEY, {})
        if not isinstance(stored, dict):
            logger.warning(f"Stored '{self.KEY}' is not an object, ignoring it")
            return {}
        return stored

    def get(self, user_id: int) -> UserSettings:
        """获取用户设置，未保存或存储值损坏时返回默认设置。"""
        stored = self._load_all().get(str(user_id))
        if stored is not None:
            try:
                return UserSettings.model_validate(stored)
            except ValidationError as e:
                logger.error(f"Invalid settings stored for user {user_id}: {e}")
        return self.defaults_for(self._users.get_by_id(user_id))

    def save(self, user_id: int, user_settings: UserSettings) -> None:
        stored = self._load_all()
        stored[str(user_id)] = user_settings.model_dump(mode="json")
        self.conn.write_json(self.KEY, stored)


class NotificationRepository(TableCRUD[Notification]):
    """站内通知仓库。

    用户关闭 app_updates 时不保存通知；
    开启 email_sales 的代表会额外收到一封模拟邮件（仅记录日志）。
    """

    def __init__(self, conn: KeyValueConnection,
                 user_repo: UserRepository,
                 settings_repo: UserSettingsRepository) -> None:
        super().__init__(conn, "notifications", Notification, prepend=True)
        self._users = user_repo
        self._settings = settings_repo

    def notify(self, user_id: int, message: str,
               link: Optional[str] = None) -> Optional[Notification]:
        """给用户发送通知。

        Returns:
            保存的通知；用户关闭了站内通知时返回 None。
        """
        user_settings = self._settings.get(user_id)
        notification = None
        if user_settings.notifications.app_updates:
            notification = self.add({
                "user_id": user_id,
                "message": message,
                "link": link,
            })

        user = self._users.get_by_id(user_id)
        if (user and user.role == UserRole.REPRESENTATIVE
                and user_settings.notifications.email_sales):
            logger.info(f"[EMAIL] Sending notification to {user.email}: \"{message}\"")

        return notification

    def get_for_user(self, user_id: int) -> List[Notification]:
        """返回用户的通知，最新在前。"""
        return sorted(
            self.filter(user_id=user_id),
            key=lambda n: n.created_at,
            reverse=True
        )

    def mark_all_read(self, user_id: int) -> None:
        items = self._load()
        changed = False
        for index, item in enumerate(items):
            if item.user_id == user_id and not item.is_read:
                items[index] = item.model_copy(update={"is_read": True})
                changed = True
        if changed:
            self._save(items)
