"""Authentication schemas for JWT tokens and user context."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


class UserContext(BaseModel):
    """Authenticated user context extracted from JWT token.

    The environment admin has no stored account, so `user_id` is None for it.
    """

    model_config = ConfigDict(from_attributes=True)

    user_id: str | None = Field(default=None, description="User identifier (from JWT sub claim)")
    email: str | None = Field(default=None, description="User's email address if available")
    role: str | None = Field(default=None, description="User's role (e.g., 'customer', 'admin')")

    @property
    def is_admin(self) -> bool:
        """Check whether the user holds the admin role."""
        return self.role == "admin"


class TokenPayload(BaseModel):
    """Claims carried by access tokens issued by this service."""

    model_config = ConfigDict(from_attributes=True)

    sub: str | None = Field(default=None, description="Subject - the user's id; absent for the env admin")
    email: str | None = Field(default=None, description="User's email address")
    role: str | None = Field(default=None, description="User's role")
    exp: int = Field(description="Expiration timestamp (Unix epoch)")
    iat: int = Field(description="Issued at timestamp (Unix epoch)")

    @property
    def expiration_datetime(self) -> datetime:
        """Get expiration as datetime object."""
        return datetime.fromtimestamp(self.exp)

    def to_user_context(self) -> UserContext:
        """Convert token payload to UserContext."""
        return UserContext(
            user_id=self.sub,
            email=self.email,
            role=self.role,
        )


class LoginRequest(BaseModel):
    """Login; the identifier may be a username or an email."""

    identifier: str | None = Field(default=None, description="Username or email")
    username: str | None = Field(default=None, description="Username (alternative to identifier)")
    email: str | None = Field(default=None, description="Email (alternative to identifier)")
    password: str = Field(min_length=1, description="Password")

    @model_validator(mode="after")
    def check_identifier(self) -> "LoginRequest":
        """Require one of identifier, username or email."""
        if not self.login_id:
            raise ValueError("identifier, username or email is required")
        return self

    @property
    def login_id(self) -> str:
        """First non-empty identifier, trimmed."""
        for value in (self.identifier, self.username, self.email):
            if value and value.strip():
                return value.strip()
        return ""


class SignupRequest(BaseModel):
    """Customer registration."""

    email: EmailStr = Field(description="Login email; stored lower-cased")
    password: str = Field(min_length=8, description="Password, at least 8 characters")
    name: str | None = Field(default=None, max_length=100, description="Display name")
    username: str | None = Field(
        default=None, min_length=3, max_length=40, pattern=r"^[A-Za-z0-9_.-]+$", description="Optional username"
    )

    @field_validator("password")
    @classmethod
    def check_password_length(cls, value: str) -> str:
        # bcrypt only reads the first 72 bytes
        if len(value.encode("utf-8")) > 72:
            raise ValueError("Password must be at most 72 bytes")
        return value


class UserInfo(BaseModel):
    """Public view of the signed-in identity."""

    id: str | None = Field(default=None, description="User ID; null for the env admin")
    email: str | None = Field(default=None, description="Email address")
    username: str | None = Field(default=None, description="Username")
    name: str | None = Field(default=None, description="Display name")
    role: str | None = Field(default=None, description="Role")


class LoginResponse(BaseModel):
    """Response for a successful login.

    The token is also set as an HttpOnly `token` cookie.
    """

    access_token: str = Field(description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(description="Token lifetime in seconds")
    user: UserInfo = Field(description="Signed-in identity")


class LogoutResponse(BaseModel):
    """Response for logout."""

    ok: bool = Field(default=True)
