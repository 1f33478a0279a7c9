"""模型定义测试。

测试 pydantic 记录模型的校验、日期解析与 JSON 序列化。
"""
from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from loopstore.models import (
    Client, ClientStatus, Commission, CommissionStatus, Representative,
    RepStatus, Sale, SaleStatus, User, UserRole, WhatsAppChat, parse_date
)


class TestParseDate:
    """日期解析测试。"""

    def test_brazilian_format(self):
        assert parse_date("09/07/2025") == date(2025, 7, 9)

    def test_iso_passthrough(self):
        assert parse_date("2025-07-09") == "2025-07-09"

    def test_date_passthrough(self):
        assert parse_date(date(2025, 1, 1)) == date(2025, 1, 1)

    def test_none_passthrough(self):
        assert parse_date(None) is None


class TestRecordValidation:
    """记录校验测试。"""

    def test_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            User(id=0, name="A", email="a@x.com", password_hash="h", role="CLIENT")

    def test_enum_values(self):
        user = User(id=1, name="A", email="a@x.com", password_hash="h", role="ADMINISTRATOR")
        assert user.role == UserRole.ADMIN

    def test_unknown_enum_value(self):
        with pytest.raises(ValidationError):
            Sale(id=1, rep_id=1, plan="P", value=1, sale_date="01/01/2025", status="Talvez")

    def test_representative_defaults(self):
        rep = Representative(id=1, name="R", email="r@x.com", commission_rate=5)
        assert rep.status == RepStatus.ACTIVE
        assert rep.sales == 0
        assert rep.goal is None
        assert rep.supervisor_id is None

    def test_client_defaults(self):
        client = Client(id=1, name="C", phone="")
        assert client.status == ClientStatus.LEAD
        assert client.plan == "Nenhum"
        assert client.user_id is None

    def test_client_phone_required(self):
        with pytest.raises(ValidationError):
            Client(id=1, name="C")

    def test_sale_accepts_date_key(self):
        sale = Sale(id=1, rep_id=1, plan="P", value=1, date="01/01/2025")
        assert sale.sale_date == date(2025, 1, 1)

    def test_sale_defaults(self):
        sale = Sale(id=1, rep_id=1, plan="P", value=1, sale_date=date(2025, 1, 1))
        assert sale.status == SaleStatus.PENDING
        assert sale.commission_paid is False

    def test_commission_is_frozen(self):
        commission = Commission(
            id=1, rep_id=1, rep_name="R", period="01/2025",
            sales_value=10, commission_value=1, status=CommissionStatus.PENDING
        )
        with pytest.raises(ValidationError):
            commission.status = CommissionStatus.PAID


class TestSerialization:
    """JSON 序列化测试。"""

    def test_sale_json_uses_iso_date(self):
        sale = Sale(id=1, rep_id=1, plan="P", value=1, sale_date="15/03/2024")
        dumped = sale.model_dump(mode="json")
        assert dumped["sale_date"] == "2024-03-15"
        assert dumped["status"] == "Pendente"
        assert Sale.model_validate(dumped) == sale

    def test_chat_json_round_trip(self):
        ts = datetime(2025, 7, 9, 12, 0, tzinfo=timezone.utc)
        chat = WhatsAppChat.model_validate({
            "id": 1, "client_id": 2, "client_name": "João",
            "last_message_timestamp": ts,
            "messages": [{"id": 1, "sender": "client", "text": "Oi", "timestamp": ts}],
        })
        assert WhatsAppChat.model_validate(chat.model_dump(mode="json")) == chat
