"""User and usage accounting models"""
from enum import Enum
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime


class Role(str, Enum):
    ADMIN = "Admin"
    USER = "User"


class User(BaseModel):
    """User with a monthly token cap"""
    id: int
    email: EmailStr
    role: Role = Role.USER
    token_cap: int = Field(alias="tokenCap")
    tokens_used: int = Field(0, alias="tokensUsed")
    last_login: datetime = Field(default_factory=datetime.utcnow, alias="lastLogin")
    status: str = "active"

    class Config:
        populate_by_name = True

    @property
    def budget_exhausted(self) -> bool:
        return self.tokens_used >= self.token_cap


class UsageLog(BaseModel):
    """One recorded tool execution"""
    id: str
    user_id: int = Field(alias="userId")
    tool_name: str = Field(alias="toolName")
    timestamp: datetime
    prompt_tokens: int = Field(alias="promptTokens")
    response_tokens: int = Field(alias="responseTokens")

    class Config:
        populate_by_name = True


class TokenUsage(BaseModel):
    """Tokens consumed by one extraction"""
    prompt_tokens: int = Field(alias="promptTokens")
    response_tokens: int = Field(alias="responseTokens")

    class Config:
        populate_by_name = True

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.response_tokens


class UserCreateRequest(BaseModel):
    email: EmailStr
    role: Role = Role.USER
    token_cap: int = Field(alias="tokenCap", gt=0)

    class Config:
        populate_by_name = True


class UserUpdateRequest(BaseModel):
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    token_cap: Optional[int] = Field(None, alias="tokenCap", gt=0)
    tokens_used: Optional[int] = Field(None, alias="tokensUsed", ge=0)
    status: Optional[str] = None

    class Config:
        populate_by_name = True


class CurrentUserRequest(BaseModel):
    user_id: int = Field(alias="userId")

    class Config:
        populate_by_name = True
