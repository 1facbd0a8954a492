"""Auth: the explicit user/session context handed to the quiz engine."""

from typing import Optional


class UserContext:
    """Identity of the caller running an attempt."""

    def __init__(self, user_id: Optional[str], username: Optional[str] = None,
                 token: Optional[str] = None):
        self.user_id = user_id
        self.username = username
        self.token = token

    @classmethod
    def anonymous(cls) -> "UserContext":
        return cls(user_id=None)

    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    def auth_headers(self) -> dict:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def __repr__(self):
        return f"UserContext(user_id={self.user_id!r}, username={self.username!r})"
