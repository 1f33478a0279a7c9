"""System repository tests.

Tests for:
- WhatsAppRepository: open_chat, append_message, ordering, simulate_incoming
- ContractTemplateRepository: default, set, render
- UserSettingsRepository: defaults, save / get
- NotificationRepository: app_updates switch, ordering, mark_all_read
"""
import random
from datetime import date

from loopstore.models import (
    Sender, Theme, UserRole, UserSettings
)
from loopstore.system_repos import (
    DEFAULT_CONTRACT_TEMPLATE, SIMULATED_QUERIES, format_brl
)


# ============================================================
# WhatsAppRepository Tests
# ============================================================
class TestWhatsAppRepository:
    """Tests for WhatsAppRepository."""

    def test_open_chat_creates_once(self, temp_store, make_client):
        client = make_client("João")
        chat = temp_store.whatsapp.open_chat(client)
        again = temp_store.whatsapp.open_chat(client)
        assert chat.id == again.id == 1
        assert chat.client_name == "João"
        assert chat.messages == []
        assert temp_store.whatsapp.count() == 1

    def test_append_message(self, temp_store, make_client):
        chat = temp_store.whatsapp.open_chat(make_client())
        updated = temp_store.whatsapp.append_message(chat.id, Sender.CLIENT, "Oi")
        updated = temp_store.whatsapp.append_message(chat.id, Sender.BOT, "Olá!")

        assert [m.id for m in updated.messages] == [1, 2]
        assert [m.sender for m in updated.messages] == [Sender.CLIENT, Sender.BOT]
        assert updated.last_message_timestamp == updated.messages[-1].timestamp
        assert temp_store.whatsapp.get_by_id(chat.id) == updated

    def test_append_preserves_earlier_messages(self, temp_store, make_client):
        chat = temp_store.whatsapp.open_chat(make_client())
        first = temp_store.whatsapp.append_message(chat.id, Sender.CLIENT, "1")
        second = temp_store.whatsapp.append_message(chat.id, Sender.ADMIN, "2")
        assert second.messages[0] == first.messages[0]

    def test_append_to_missing_chat(self, temp_store):
        before = temp_store.whatsapp.get_all()
        assert temp_store.whatsapp.append_message(5, Sender.ADMIN, "x") is None
        assert temp_store.whatsapp.get_all() == before

    def test_chats_sorted_by_last_message(self, temp_store, make_client):
        a = temp_store.whatsapp.open_chat(make_client("A"))
        b = temp_store.whatsapp.open_chat(make_client("B"))
        temp_store.whatsapp.append_message(b.id, Sender.CLIENT, "b")
        temp_store.whatsapp.append_message(a.id, Sender.CLIENT, "a")
        assert [c.id for c in temp_store.whatsapp.get_chats()] == [a.id, b.id]

    def test_simulate_without_active_clients(self, temp_store, make_client):
        make_client(status="Lead")
        assert temp_store.whatsapp.simulate_incoming() is None
        assert temp_store.whatsapp.get_all() == []

    def test_simulate_incoming(self, temp_store, make_client):
        client = make_client("Maria")
        result = temp_store.whatsapp.simulate_incoming(random.Random(3))
        assert result is not None
        chat, message = result
        assert chat.client_id == client.id
        assert message.sender == Sender.CLIENT
        assert message.text in [q.format(plan=client.plan) for q in SIMULATED_QUERIES]
        assert chat.messages[-1] == message

    def test_simulate_reuses_existing_chat(self, temp_store, make_client):
        client = make_client()
        chat = temp_store.whatsapp.open_chat(client)
        temp_store.whatsapp.simulate_incoming(random.Random(1))
        temp_store.whatsapp.simulate_incoming(random.Random(2))
        chats = temp_store.whatsapp.get_all()
        assert len(chats) == 1
        assert chats[0].id == chat.id
        assert [m.id for m in chats[0].messages] == [1, 2]


# ============================================================
# ContractTemplateRepository Tests
# ============================================================
class TestContractTemplate:
    """Tests for the contract template singleton."""

    def test_default_template(self, temp_store):
        assert temp_store.get_contract_template() == DEFAULT_CONTRACT_TEMPLATE

    def test_set_template(self, temp_store):
        temp_store.set_contract_template("Contrato de {{CLIENT_NAME}}")
        assert temp_store.get_contract_template() == "Contrato de {{CLIENT_NAME}}"

    def test_render_default_template(self, temp_store, make_rep, make_client):
        rep = make_rep("Carlos Andrade")
        client = make_client(
            "Maria Oliveira", rep_id=rep.id, document="123.456.789-10",
            address="Rua das Flores, 123", email="maria.o@example.com"
        )
        sale = temp_store.sales.add({
            "rep_id": rep.id, "client_id": client.id, "plan": "Casa na Praia",
            "value": 450000, "sale_date": "15/07/2025",
        })

        text = temp_store.render_contract(sale.id, today=date(2025, 7, 20))
        assert "{{" not in text
        assert "Nome: Maria Oliveira" in text
        assert "CPF/CNPJ: 123.456.789-10" in text
        assert "REPRESENTANTE: Carlos Andrade" in text
        assert "VALOR DO CRÉDITO: R$ 450.000,00" in text
        assert "DATA DA VENDA: 15/07/2025" in text
        assert "São Paulo, 20/07/2025" in text

    def test_render_with_dangling_references(self, temp_store):
        sale = temp_store.sales.add({
            "rep_id": 9, "client_id": 9, "client_name": "Sem Cadastro",
            "plan": "P", "value": 10, "sale_date": "01/01/2025",
        })
        temp_store.set_contract_template("{{CLIENT_NAME}}|{{REP_NAME}}|{{CLIENT_PHONE}}")
        assert temp_store.render_contract(sale.id) == "Sem Cadastro||"

    def test_render_missing_sale(self, temp_store):
        assert temp_store.render_contract(1) is None

    def test_non_string_template_falls_back_to_default(self, temp_store):
        temp_store.conn.write_json("contract_template", 5)
        assert temp_store.get_contract_template() == DEFAULT_CONTRACT_TEMPLATE

        sale = temp_store.sales.add({
            "rep_id": 1, "client_name": "X", "plan": "P",
            "value": 10, "sale_date": "01/01/2025",
        })
        assert "Nome: X" in temp_store.render_contract(sale.id)

    def test_format_brl(self):
        assert format_brl(1234.5) == "1.234,50"
        assert format_brl(0) == "0,00"


# ============================================================
# UserSettingsRepository Tests
# ============================================================
class TestUserSettings:
    """Tests for user settings."""

    def test_defaults_for_representative(self, temp_store):
        user = temp_store.users.register("Rep", "rep@loop.com", "pw", UserRole.REPRESENTATIVE)
        user_settings = temp_store.user_settings.get(user.id)
        assert user_settings.profile.email == "rep@loop.com"
        assert user_settings.notifications.email_sales is True
        assert user_settings.theme == Theme.SYSTEM

    def test_defaults_for_client(self, temp_store):
        user = temp_store.users.register("Cli", "cli@loop.com", "pw", UserRole.CLIENT)
        assert temp_store.user_settings.get(user.id).notifications.email_sales is False

    def test_defaults_for_unknown_user(self, temp_store):
        user_settings = temp_store.user_settings.get(404)
        assert user_settings.profile.name == ""
        assert user_settings.notifications.app_updates is True

    def test_save_and_get(self, temp_store):
        user = temp_store.users.register("A", "a@loop.com", "pw", UserRole.ADMIN)
        custom = UserSettings(theme=Theme.DARK)
        temp_store.user_settings.save(user.id, custom)
        assert temp_store.user_settings.get(user.id) == custom

    def test_invalid_stored_settings_fall_back_to_defaults(self, temp_store):
        user = temp_store.users.register("A", "a@loop.com", "pw", UserRole.ADMIN)
        temp_store.conn.write_json("user_settings", {str(user.id): {"theme": "purple"}})
        user_settings = temp_store.user_settings.get(user.id)
        assert user_settings == temp_store.user_settings.defaults_for(user)

    def test_save_over_non_object_value(self, temp_store):
        temp_store.conn.write_json("user_settings", [1, 2])
        custom = UserSettings(theme=Theme.LIGHT)
        temp_store.user_settings.save(1, custom)
        assert temp_store.user_settings.get(1) == custom
        assert temp_store.conn.read_json("user_settings", None) == {
            "1": custom.model_dump(mode="json")
        }


# ============================================================
# NotificationRepository Tests
# ============================================================
class TestNotifications:
    """Tests for NotificationRepository."""

    def test_notify_and_list(self, temp_store):
        user = temp_store.users.register("A", "a@loop.com", "pw", UserRole.ADMIN)
        first = temp_store.notifications.notify(user.id, "primeira")
        second = temp_store.notifications.notify(user.id, "segunda", link="sales")
        notes = temp_store.notifications.get_for_user(user.id)
        assert [n.id for n in notes] == [second.id, first.id]
        assert all(not n.is_read for n in notes)

    def test_app_updates_off_skips_storage(self, temp_store):
        user = temp_store.users.register("A", "a@loop.com", "pw", UserRole.ADMIN)
        user_settings = temp_store.user_settings.get(user.id)
        user_settings.notifications.app_updates = False
        temp_store.user_settings.save(user.id, user_settings)

        assert temp_store.notifications.notify(user.id, "oi") is None
        assert temp_store.notifications.get_for_user(user.id) == []

    def test_mark_all_read_only_for_user(self, temp_store):
        a = temp_store.users.register("A", "a@loop.com", "pw", UserRole.ADMIN)
        b = temp_store.users.register("B", "b@loop.com", "pw", UserRole.ADMIN)
        temp_store.notifications.notify(a.id, "para A")
        temp_store.notifications.notify(b.id, "para B")

        temp_store.notifications.mark_all_read(a.id)
        assert all(n.is_read for n in temp_store.notifications.get_for_user(a.id))
        assert not any(n.is_read for n in temp_store.notifications.get_for_user(b.id))
