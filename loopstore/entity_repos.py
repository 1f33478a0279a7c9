"""实体仓库 —— 基础实体的数据访问层。

管理系统中的基础实体（用户、销售代表、客户、方案）。
每个仓库继承 TableCRUD 获得通用能力，并添加领域特定的查询方法。

实体之间的 ``user_id`` / ``rep_id`` / ``supervisor_id`` 都是弱引用：
只在创建时建立，不强制存在，也不级联删除。解引用悬空 ID 时返回 None。
"""
from typing import Any, Dict, List, Optional, Union

from loguru import logger

from config.settings import settings
from .base_crud import TableCRUD
from .connection import KeyValueConnection
from .models import (
    Client, ClientStatus, ErrorResult, PasswordChangeResult, Plan,
    RepStatus, Representative, User, UserRole
)


def hash_password(plaintext: str) -> str:
    """占位密码哈希。

    仅用于演示，不具备任何安全性；真实系统应使用 bcrypt 等算法。
    """
    return f"hashed_{plaintext}"


class RepresentativeRepository(TableCRUD[Representative]):
    """销售代表仓库。"""

    def __init__(self, conn: KeyValueConnection) -> None:
        super().__init__(conn, "representatives", Representative)

    def add(self, data: Dict[str, Any]) -> Representative:
        """新增代表，默认销售计数 0、状态激活、使用默认月度目标。"""
        data = {
            "sales": 0,
            "status": RepStatus.ACTIVE,
            "goal": settings.default_rep_goal,
            **data,
        }
        return super().add(data)

    def find_by_user_id(self, user_id: int) -> Optional[Representative]:
        return self.find_first(user_id=user_id)

    def get_active(self) -> List[Representative]:
        return self.filter(status=RepStatus.ACTIVE)

    def get_team(self, supervisor_id: int) -> List[Representative]:
        """获取某个代表直接管理的团队成员。"""
        return self.filter(supervisor_id=supervisor_id)

    def set_status(self, rep_id: int,
                   status: RepStatus) -> Optional[Representative]:
        return self.update_by_id(rep_id, status=status)

    def toggle_status(self, rep_id: int) -> Optional[Representative]:
        """切换代表的激活状态。

        Returns:
            更新后的代表，不存在返回 None。
        """
        rep = self.get_by_id(rep_id)
        if rep is None:
            return None
        new_status = (
            RepStatus.INACTIVE if rep.status == RepStatus.ACTIVE
            else RepStatus.ACTIVE
        )
        return self.update_by_id(rep_id, status=new_status)

    def set_goal(self, rep_id: int,
                 goal: Optional[float]) -> Optional[Representative]:
        return self.update_by_id(rep_id, goal=goal)


class ClientRepository(TableCRUD[Client]):
    """客户 / 潜在客户仓库。新客户插入表头。"""

    def __init__(self, conn: KeyValueConnection) -> None:
        super().__init__(conn, "clients", Client, prepend=True)

    def find_by_user_id(self, user_id: int) -> Optional[Client]:
        return self.find_first(user_id=user_id)

    def get_by_rep(self, rep_id: int) -> List[Client]:
        return self.filter(rep_id=rep_id)

    def get_leads(self) -> List[Client]:
        return self.filter(status=ClientStatus.LEAD)

    def set_lead_score(self, client_id: int, score: int,
                       justification: str) -> Optional[Client]:
        """回写外部服务给出的潜在客户评分。"""
        return self.update_by_id(
            client_id, lead_score=score, lead_justification=justification
        )


class PlanRepository(TableCRUD[Plan]):
    """方案目录仓库。"""

    def __init__(self, conn: KeyValueConnection) -> None:
        super().__init__(conn, "plans", Plan)

    def find_by_name(self, name: str) -> Optional[Plan]:
        """按名称查找方案（客户与销售按名称引用方案）。"""
        return self.find_first(name=name)


class UserRepository(TableCRUD[User]):
    """用户仓库。

    负责注册与密码修改。注册客户或代表角色时会自动创建对应档案，
    因此需要注入客户与代表仓库。
    """

    def __init__(self, conn: KeyValueConnection,
                 client_repo: ClientRepository,
                 rep_repo: RepresentativeRepository) -> None:
        super().__init__(conn, "users", User)
        self._clients = client_repo
        self._reps = rep_repo

    def find_by_email(self, email: str) -> Optional[User]:
        """按邮箱查找用户（大小写不敏感）。"""
        target = email.lower()
        return self.find_first(lambda u: u.email.lower() == target)

    def get_admins(self) -> List[User]:
        return self.filter(role=UserRole.ADMIN)

    def register(self, name: str, email: str, password: str,
                 role: UserRole) -> Union[User, ErrorResult]:
        """注册新用户。

        邮箱已存在（大小写不敏感）时返回错误结果且不新增用户。
        客户角色自动创建一个潜在客户档案，代表角色自动创建代表档案，
        管理员不创建额外档案。

        Args:
            name: 姓名。
            email: 邮箱。
            password: 明文密码。
            role: 用户角色。

        Returns:
            新用户，或 ErrorResult。
        """
        if self.find_by_email(email) is not None:
            logger.info(f"Registration rejected, email already in use: {email}")
            return ErrorResult(error="Este email já está em uso.")

        user = self.add({
            "name": name,
            "email": email,
            "password_hash": hash_password(password),
            "role": role,
        })

        if user.role == UserRole.CLIENT:
            self._clients.add({
                "name": user.name,
                "email": user.email,
                "phone": "",
                "document": "",
                "address": "",
                "plan": "Nenhum",
                "status": ClientStatus.LEAD,
                "user_id": user.id,
            })
        elif user.role == UserRole.REPRESENTATIVE:
            self._reps.add({
                "name": user.name,
                "email": user.email,
                "commission_rate": settings.default_commission_rate,
                "user_id": user.id,
            })

        logger.info(f"Registered user {user.id} ({user.role.value})")
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """校验邮箱与密码，成功返回用户。"""
        user = self.find_by_email(email)
        if user and user.password_hash == hash_password(password):
            return user
        return None

    def update_password(self, user_id: int, current_password: str,
                        new_password: str) -> PasswordChangeResult:
        """修改密码，需要校验当前密码。"""
        user = self.get_by_id(user_id)
        if user is None:
            return PasswordChangeResult(
                success=False, error="Usuário não encontrado."
            )
        if user.password_hash != hash_password(current_password):
            return PasswordChangeResult(
                success=False, error="A senha atual está incorreta."
            )

        self.update_by_id(user_id, password_hash=hash_password(new_password))
        return PasswordChangeResult(success=True)
