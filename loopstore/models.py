"""记录模型定义。

本模块定义了记录存储中的全部数据结构，包括：
- 键值存储底层的 ORM 行模型（KeyValueEntry）
- 用户、代表、客户、方案、销售等实体记录（pydantic 模型）
- 佣金等派生视图记录（只计算，不持久化）
- WhatsApp 会话、通知、用户设置等系统数据
- 注册、改密等操作的结果类型

实体记录以 JSON 数组形式保存在键值存储中，每张表对应一个键。
"""
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import (
    BaseModel, ConfigDict, Field, field_validator, model_validator
)
from sqlalchemy import Column, String, Text
from sqlalchemy.orm import declarative_base

# SQLAlchemy declarative base，键值存储底层表继承自此类
Base = declarative_base()
Base.__allow_unmapped__ = True


class KeyValueEntry(Base):
    """键值存储表模型。

    每一行保存一个键及其 JSON 序列化后的字符串值，
    对应浏览器 localStorage 中的一个条目。

    Attributes:
        key: 主键，字符串键名（如 users、sales）。
        value: JSON 字符串值。
    """
    __tablename__ = "kv_entries"

    key: str = Column(String(100), primary_key=True)
    value: str = Column(Text, nullable=False)


def utcnow() -> datetime:
    """当前 UTC 时间（带时区）。"""
    return datetime.now(timezone.utc)


def parse_date(value):
    """把 ``dd/mm/yyyy`` 或 ISO 日期字符串转换为 date，其余值原样返回。"""
    if isinstance(value, str) and "/" in value:
        return datetime.strptime(value, "%d/%m/%Y").date()
    return value


# ================================================================
# 枚举
# ================================================================

class UserRole(str, Enum):
    """用户角色"""
    ADMIN = "ADMINISTRATOR"
    REPRESENTATIVE = "REPRESENTATIVE"
    CLIENT = "CLIENT"


class RepStatus(str, Enum):
    """代表状态"""
    ACTIVE = "Ativo"
    INACTIVE = "Inativo"


class ClientStatus(str, Enum):
    """客户状态"""
    ACTIVE = "Cliente Ativo"
    LEAD = "Lead"
    INACTIVE = "Inativo"


class PlanType(str, Enum):
    """方案类型"""
    REAL_ESTATE = "Imóvel"
    AUTOMOBILE = "Automóvel"
    SERVICES = "Serviços"


class SaleStatus(str, Enum):
    """销售（合同）状态"""
    APPROVED = "Aprovada"
    PENDING = "Pendente"
    REJECTED = "Recusada"


class CommissionStatus(str, Enum):
    """佣金状态"""
    PAID = "Paga"
    PENDING = "Pendente"


class Sender(str, Enum):
    """WhatsApp 消息发送方"""
    CLIENT = "client"
    BOT = "bot"
    ADMIN = "admin"


class Theme(str, Enum):
    """界面主题"""
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


# ================================================================
# 实体记录
# ================================================================

class Record(BaseModel):
    """所有表记录的基类。

    ID 在各自表内唯一，由 TableCRUD 按 max+1 规则分配。
    """
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: int = Field(gt=0)


class User(Record):
    """用户身份记录。

    Attributes:
        name: 用户姓名。
        email: 邮箱（大小写不敏感唯一）。
        password_hash: 密码占位哈希（非加密，不安全）。
        role: 用户角色。
    """
    name: str
    email: str
    password_hash: str
    role: UserRole


class Representative(Record):
    """销售代表档案。

    Attributes:
        name: 代表姓名。
        email: 邮箱。
        commission_rate: 佣金比例（百分比，0-100）。
        sales: 销售计数。
        status: 激活状态。
        goal: 月度目标金额，可选。
        supervisor_id: 上级代表 ID（弱引用），可选。
        user_id: 关联用户 ID（弱引用），可选。
    """
    name: str
    email: str
    commission_rate: float = Field(ge=0, le=100)
    sales: int = 0
    status: RepStatus = RepStatus.ACTIVE
    goal: Optional[float] = None
    supervisor_id: Optional[int] = None
    user_id: Optional[int] = None


class Client(Record):
    """客户 / 潜在客户档案。

    ``plan`` 按名称引用方案（弱引用），``rep_id`` 和 ``user_id`` 均不强制存在。
    """
    name: str
    phone: str
    email: Optional[str] = None
    document: Optional[str] = None
    address: Optional[str] = None
    plan: str = "Nenhum"
    status: ClientStatus = ClientStatus.LEAD
    next_payment: Optional[date] = None
    contract_start_date: Optional[date] = None
    lead_score: Optional[int] = None
    lead_justification: Optional[str] = None
    user_id: Optional[int] = None
    rep_id: Optional[int] = None

    @field_validator("next_payment", "contract_start_date", mode="before")
    @classmethod
    def _parse_dates(cls, value):
        return parse_date(value)


class Plan(Record):
    """方案目录条目。

    Attributes:
        name: 方案名称（客户与销售通过名称引用）。
        type: 方案类型。
        value_range: 信贷金额区间（最小值, 最大值）。
        term: 期限（月）。
        admin_fee: 管理费百分比。
    """
    name: str
    type: PlanType
    value_range: Tuple[float, float]
    term: int
    admin_fee: float


class Sale(Record):
    """销售（合同）记录。

    ``client_id`` 是权威的客户引用，``client_name`` 仅用于展示，
    创建时若未提供则从客户表补全。输入时 ``date`` 与 ``sale_date`` 等价。
    """
    rep_id: int
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    plan: str
    value: float
    sale_date: date
    status: SaleStatus = SaleStatus.PENDING
    rejection_reason: Optional[str] = None
    commission_paid: bool = False

    @model_validator(mode="before")
    @classmethod
    def _accept_date_key(cls, data):
        # 输入中的 date 键等同于 sale_date
        if isinstance(data, dict) and "date" in data:
            data = dict(data)
            data["sale_date"] = data.pop("date")
        return data

    @field_validator("sale_date", mode="before")
    @classmethod
    def _parse_sale_date(cls, value):
        return parse_date(value)


class Commission(BaseModel):
    """佣金（派生视图，只读，从不持久化）。

    Attributes:
        id: 对应销售记录的 ID。
        rep_id: 代表 ID。
        rep_name: 代表姓名，代表不存在时为 "N/A"。
        period: 销售日期所在的月份，格式 MM/YYYY。
        sales_value: 销售金额。
        commission_value: 佣金金额 = 销售金额 × 佣金比例 / 100。
        status: 是否已支付。
    """
    model_config = ConfigDict(frozen=True)

    id: int
    rep_id: int
    rep_name: str
    period: str
    sales_value: float
    commission_value: float
    status: CommissionStatus


class WhatsAppMessage(BaseModel):
    """WhatsApp 消息（ID 在所属会话内唯一）"""
    model_config = ConfigDict(extra="forbid")

    id: int = Field(gt=0)
    sender: Sender
    text: str
    timestamp: datetime = Field(default_factory=utcnow)


class WhatsAppChat(Record):
    """WhatsApp 会话。

    消息只追加、不修改；``last_message_timestamp`` 始终等于
    最后一条消息的时间戳。
    """
    client_id: int
    client_name: str
    client_phone: str = ""
    messages: List[WhatsAppMessage] = Field(default_factory=list)
    last_message_timestamp: datetime = Field(default_factory=utcnow)


class Notification(Record):
    """用户通知"""
    user_id: int
    message: str
    link: Optional[str] = None
    is_read: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class ProfileSettings(BaseModel):
    name: str = ""
    email: str = ""
    avatar: str = ""


class NotificationSettings(BaseModel):
    email_news: bool = True
    email_sales: bool = False
    app_updates: bool = True


class UserSettings(BaseModel):
    """用户偏好设置（按用户 ID 存储在同一个 JSON 对象中）"""
    profile: ProfileSettings = Field(default_factory=ProfileSettings)
    notifications: NotificationSettings = Field(
        default_factory=NotificationSettings
    )
    theme: Theme = Theme.SYSTEM


# ================================================================
# 操作结果
# ================================================================

class ErrorResult(BaseModel):
    """校验失败结果（如注册时邮箱重复），与成功返回的实体区分。"""
    error: str


class PasswordChangeResult(BaseModel):
    """修改密码结果"""
    success: bool
    error: Optional[str] = None
