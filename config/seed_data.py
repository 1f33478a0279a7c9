"""
种子数据接口 - 支持可替换的初始数据

新部署可以实现自己的种子数据，替换默认的 Loop 演示数据。
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Dict, Any


class SeedConfig(ABC):
    """种子数据抽象基类"""

    @abstractmethod
    def get_users(self) -> List[Dict[str, Any]]:
        """获取初始用户（password 为明文，写入前会被哈希）"""
        pass

    @abstractmethod
    def get_representatives(self) -> List[Dict[str, Any]]:
        """获取初始销售代表"""
        pass

    @abstractmethod
    def get_clients(self) -> List[Dict[str, Any]]:
        """获取初始客户"""
        pass

    @abstractmethod
    def get_sales(self) -> List[Dict[str, Any]]:
        """获取初始销售"""
        pass

    @abstractmethod
    def get_plans(self) -> List[Dict[str, Any]]:
        """获取初始方案"""
        pass

    @abstractmethod
    def get_whatsapp_chats(self) -> List[Dict[str, Any]]:
        """获取初始 WhatsApp 会话"""
        pass


class LoopSeedConfig(SeedConfig):
    """Loop 消费合作社演示数据"""

    def get_users(self) -> List[Dict[str, Any]]:
        users = [
            (101, "Admin", "admin@loop.com", "ADMINISTRATOR"),
            (1, "Carlos Andrade", "carlos.a@example.com", "REPRESENTATIVE"),
            (2, "Sofia Ribeiro", "sofia.r@example.com", "REPRESENTATIVE"),
            (3, "Juliana Paes", "juliana.p@example.com", "REPRESENTATIVE"),
            (4, "Pedro Mendes", "pedro.m@example.com", "REPRESENTATIVE"),
            (5, "Mariana Lima", "mariana.l@example.com", "REPRESENTATIVE"),
            (6, "Maria Oliveira", "maria.o@example.com", "CLIENT"),
            (12, "Ana Costa", "ana.c@example.com", "CLIENT"),
        ]
        return [
            {"id": i, "name": name, "email": email,
             "password": "password123", "role": role}
            for i, name, email, role in users
        ]

    def get_representatives(self) -> List[Dict[str, Any]]:
        reps = [
            (1, "Carlos Andrade", "carlos.a@example.com", 12, 5, 200000, "Ativo", None),
            (2, "Sofia Ribeiro", "sofia.r@example.com", 9, 5, 150000, "Ativo", 1),
            (3, "Juliana Paes", "juliana.p@example.com", 7, 4.5, 120000, "Ativo", 1),
            (4, "Pedro Mendes", "pedro.m@example.com", 5, 4.5, 100000, "Inativo", None),
            (5, "Mariana Lima", "mariana.l@example.com", 15, 5.5, 250000, "Ativo", None),
        ]
        return [
            {"id": i, "user_id": i, "name": name, "email": email,
             "sales": sales, "commission_rate": rate, "goal": goal,
             "status": status, "supervisor_id": supervisor}
            for i, name, email, sales, rate, goal, status, supervisor in reps
        ]

    def get_clients(self) -> List[Dict[str, Any]]:
        return [
            {"id": 1, "user_id": 6, "rep_id": 2, "name": "Maria Oliveira", "email": "maria.o@example.com", "phone": "(11) 98765-4321", "document": "123.456.789-10", "address": "Rua das Flores, 123, São Paulo, SP", "plan": "Casa na Praia", "status": "Cliente Ativo", "next_payment": "20/08/2025"},
            {"id": 2, "rep_id": 1, "name": "João Silva", "email": "joao.s@example.com", "phone": "(21) 91234-5678", "document": "234.567.890-11", "address": "Avenida Copacabana, 456, Rio de Janeiro, RJ", "plan": "Carro Novo", "status": "Cliente Ativo", "next_payment": "25/08/2025"},
            {"id": 3, "rep_id": 2, "name": "Carlos Pereira", "email": "carlos.p@example.com", "phone": "(31) 95555-8888", "document": "345.678.901-22", "address": "Rua da Bahia, 789, Belo Horizonte, MG", "plan": "Meu Apê", "status": "Inativo"},
            {"id": 4, "rep_id": 3, "name": "Beatriz Lima", "email": "beatriz.l@example.com", "phone": "(41) 99999-1111", "document": "456.789.012-33", "address": "Rua das Araucárias, 101, Curitiba, PR", "plan": "Sua Viagem", "status": "Cliente Ativo", "next_payment": "10/09/2025"},
            {"id": 5, "rep_id": 1, "name": "Ricardo Alves", "email": "ricardo.a@example.com", "phone": "(51) 98888-2222", "document": "567.890.123-44", "address": "Avenida Ipiranga, 202, Porto Alegre, RS", "plan": "Carro Novo", "status": "Lead"},
            {"id": 6, "rep_id": 1, "name": "Fernanda Lima", "email": "fernanda.l@example.com", "phone": "(61) 97777-3333", "document": "678.901.234-55", "address": "Eixo Monumental, 303, Brasília, DF", "plan": "Nenhum", "status": "Lead"},
            {"id": 7, "rep_id": 5, "name": "Roberto Dias", "email": "roberto.d@example.com", "phone": "(71) 97777-3334", "document": "789.012.345-66", "address": "Avenida Oceânica, 404, Salvador, BA", "plan": "Carro Novo", "status": "Cliente Ativo", "next_payment": "05/09/2025"},
            {"id": 8, "rep_id": 3, "name": "Lucas Martins", "email": "lucas.m@example.com", "phone": "(81) 97777-3335", "document": "890.123.456-77", "address": "Rua da Moeda, 505, Recife, PE", "plan": "Sua Viagem", "status": "Cliente Ativo", "next_payment": "08/09/2025"},
            {"id": 9, "rep_id": 2, "name": "Vanessa Costa", "email": "vanessa.c@example.com", "phone": "(85) 97777-3336", "document": "901.234.567-88", "address": "Avenida Beira Mar, 606, Fortaleza, CE", "plan": "Casa na Praia", "status": "Cliente Ativo", "next_payment": "12/09/2025"},
            {"id": 10, "rep_id": 4, "name": "Gabriel Rocha", "email": "gabriel.r@example.com", "phone": "(92) 97777-3337", "document": "012.345.678-99", "address": "Rua do Comércio, 707, Manaus, AM", "plan": "Moto Zera", "status": "Inativo"},
            {"id": 11, "rep_id": 5, "name": "Mariana Azevedo", "email": "mariana.az@example.com", "phone": "(48) 97777-3338", "document": "111.222.333-44", "address": "Avenida Beira Mar Norte, 808, Florianópolis, SC", "plan": "Meu Apê", "status": "Cliente Ativo", "next_payment": "18/09/2025"},
            {"id": 12, "user_id": 12, "rep_id": 1, "name": "Ana Costa", "email": "ana.c@example.com", "phone": "(11) 98765-1111", "document": "555.666.777-88", "address": "Avenida Paulista, 909, São Paulo, SP", "plan": "Carro Novo", "status": "Cliente Ativo", "contract_start_date": "2024-03-15"},
        ]

    def get_sales(self) -> List[Dict[str, Any]]:
        sales = [
            (1, 1, 2, "Carro Novo", 50000, "09/07/2025", "Aprovada", True, None),
            (2, 2, 3, "Meu Apê", 350000, "05/07/2025", "Pendente", False, None),
            (3, 3, 4, "Sua Viagem", 15000, "02/07/2025", "Recusada", False, "Score de crédito insuficiente."),
            (4, 4, 5, "Carro Novo", 80000, "28/06/2025", "Aprovada", True, None),
            (5, 1, 6, "Casa na Praia", 450000, "15/07/2025", "Pendente", False, None),
            (6, 2, 7, "Carro Novo", 95000, "14/07/2025", "Aprovada", True, None),
            (7, 3, 8, "Sua Viagem", 25000, "12/07/2025", "Aprovada", True, None),
            (8, 1, 9, "Casa na Praia", 600000, "11/07/2025", "Pendente", False, None),
            (9, 4, 10, "Moto Zera", 22000, "10/07/2025", "Recusada", False, "Documentação incompleta."),
            (10, 5, 11, "Meu Apê", 280000, "08/07/2025", "Pendente", False, None),
            (11, 1, 12, "Carro Novo", 80000, "15/03/2024", "Aprovada", True, None),
        ]
        return [
            {"id": i, "rep_id": rep_id, "client_id": client_id, "plan": plan,
             "value": value, "sale_date": sale_date, "status": status,
             "commission_paid": paid, "rejection_reason": reason}
            for i, rep_id, client_id, plan, value, sale_date, status, paid, reason in sales
        ]

    def get_plans(self) -> List[Dict[str, Any]]:
        return [
            {"id": 1, "name": "Meu Apê", "type": "Imóvel", "value_range": (150000, 500000), "term": 180, "admin_fee": 18},
            {"id": 2, "name": "Carro Novo", "type": "Automóvel", "value_range": (40000, 120000), "term": 80, "admin_fee": 15},
            {"id": 3, "name": "Sua Viagem", "type": "Serviços", "value_range": (10000, 30000), "term": 36, "admin_fee": 22},
            {"id": 4, "name": "Casa na Praia", "type": "Imóvel", "value_range": (300000, 1000000), "term": 200, "admin_fee": 17},
            {"id": 5, "name": "Moto Zera", "type": "Automóvel", "value_range": (15000, 40000), "term": 60, "admin_fee": 16},
        ]

    def get_whatsapp_chats(self) -> List[Dict[str, Any]]:
        now = datetime.now(timezone.utc)
        return [
            {
                "id": 1,
                "client_id": 2,
                "client_name": "João Silva",
                "client_phone": "(21) 91234-5678",
                "last_message_timestamp": now,
                "messages": [
                    {"id": 1, "sender": "client", "text": "Olá, gostaria de saber o status do meu consórcio.", "timestamp": now},
                    {"id": 2, "sender": "bot", "text": "Olá, João! Seu consórcio de Automóvel está ativo e com os pagamentos em dia. O próximo vencimento é em 25/08/2025. Posso ajudar em algo mais?", "timestamp": now},
                ],
            }
        ]


# 全局种子数据实例（可以在启动时替换）
seed_config: SeedConfig = LoopSeedConfig()
