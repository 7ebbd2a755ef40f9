"""In-memory user and usage log store"""
from typing import Dict, List, Optional
from datetime import datetime, timezone
import random
import logging
from ..exceptions import InputValidationError, NotFoundError
from ..models.usage import Role, TokenUsage, UsageLog, User
from ..utils.helpers import generate_log_id

logger = logging.getLogger(__name__)


def _seed_users() -> List[User]:
    return [
        User(
            id=1,
            email="admin@example.com",
            role=Role.ADMIN,
            token_cap=1000000,
            tokens_used=12500,
            last_login=datetime(2023, 10, 27, 10, 0, tzinfo=timezone.utc),
        ),
        User(
            id=2,
            email="user@example.com",
            role=Role.USER,
            token_cap=50000,
            tokens_used=45000,
            last_login=datetime(2023, 10, 27, 12, 30, tzinfo=timezone.utc),
        ),
        User(
            id=3,
            email="inactive@example.com",
            role=Role.USER,
            token_cap=20000,
            tokens_used=19950,
            last_login=datetime(2023, 10, 25, 8, 0, tzinfo=timezone.utc),
            status="inactive",
        ),
    ]


def _seed_logs() -> List[UsageLog]:
    return [
        UsageLog(
            id="log1", user_id=1, tool_name="Metadata Extractor",
            timestamp=datetime(2023, 10, 27, 10, 5, tzinfo=timezone.utc),
            prompt_tokens=2500, response_tokens=1500,
        ),
        UsageLog(
            id="log2", user_id=2, tool_name="Metadata Extractor",
            timestamp=datetime(2023, 10, 27, 12, 35, tzinfo=timezone.utc),
            prompt_tokens=8000, response_tokens=4200,
        ),
        UsageLog(
            id="log3", user_id=2, tool_name="Metadata Extractor",
            timestamp=datetime(2023, 10, 26, 11, 0, tzinfo=timezone.utc),
            prompt_tokens=15000, response_tokens=7800,
        ),
    ]


class UsageStore:
    """
    Mock multi-tenant usage metering

    Token counts are illustrative: each recorded run is charged a random
    number of prompt and response tokens.
    """

    def __init__(self, seed: bool = True, rng: Optional[random.Random] = None):
        self._users: Dict[int, User] = {}
        self._logs: List[UsageLog] = []
        self._rng = rng or random.Random()
        self._current_user_id: Optional[int] = None

        if seed:
            for user in _seed_users():
                self._users[user.id] = user
            self._logs = _seed_logs()
            admin = next((u for u in self._users.values() if u.role == Role.ADMIN), None)
            self._current_user_id = admin.id if admin else None

    def list_users(self) -> List[User]:
        return list(self._users.values())

    def get_user(self, user_id: int) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def current_user(self) -> Optional[User]:
        if self._current_user_id is None:
            return None
        return self._users.get(self._current_user_id)

    def set_current_user(self, user_id: int) -> User:
        user = self.get_user(user_id)
        self._current_user_id = user.id
        user.last_login = datetime.now(timezone.utc)
        return user

    def add_user(self, email: str, role: Role, token_cap: int) -> User:
        if any(u.email == email for u in self._users.values()):
            raise InputValidationError(f"User {email} already exists")
        new_id = max(self._users.keys(), default=0) + 1
        user = User(id=new_id, email=email, role=role, token_cap=token_cap, tokens_used=0)
        self._users[new_id] = user
        logger.info(f"User {email} added with cap {token_cap}")
        return user

    def update_user(self, user_id: int, **changes) -> User:
        user = self.get_user(user_id)
        updated = user.model_copy(update={k: v for k, v in changes.items() if v is not None})
        self._users[user_id] = User.model_validate(updated.model_dump())
        logger.info(f"User {user_id} updated: {sorted(k for k, v in changes.items() if v is not None)}")
        return self._users[user_id]

    def delete_user(self, user_id: int):
        if user_id == self._current_user_id:
            raise InputValidationError("Cannot delete the currently logged-in user.")
        self.get_user(user_id)
        del self._users[user_id]
        logger.info(f"User with ID {user_id} deleted")

    def list_logs(self, user_id: Optional[int] = None) -> List[UsageLog]:
        """Usage logs, newest first"""
        logs = self._logs if user_id is None else [log for log in self._logs if log.user_id == user_id]
        return sorted(logs, key=lambda log: log.timestamp, reverse=True)

    def record_usage(self, user_id: int, tool_name: str) -> TokenUsage:
        """Charge a run to a user and log it"""
        prompt_tokens = self._rng.randint(500, 3499)
        response_tokens = self._rng.randint(300, 2299)

        self._logs.insert(0, UsageLog(
            id=generate_log_id(),
            user_id=user_id,
            tool_name=tool_name,
            timestamp=datetime.now(timezone.utc),
            prompt_tokens=prompt_tokens,
            response_tokens=response_tokens,
        ))

        user = self._users.get(user_id)
        if user is not None:
            user.tokens_used += prompt_tokens + response_tokens

        logger.info(f"Recorded {prompt_tokens + response_tokens} tokens for user {user_id} ({tool_name})")
        return TokenUsage(prompt_tokens=prompt_tokens, response_tokens=response_tokens)
