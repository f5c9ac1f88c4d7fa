"""Core data models for Frost."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class UserConfig(BaseModel):
    """SSO portal the user signs in to."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    start_url: str = Field(..., alias="startUrl", description="SSO start URL")
    region: str = Field(..., description="Region hosting the SSO instance")

    @field_validator("start_url")
    @classmethod
    def validate_start_url(cls, value: str) -> str:
        """Require an absolute http(s) URL."""
        if not value.startswith(("https://", "http://")):
            raise ValueError(f"start URL must be an http(s) URL: {value!r}")
        return value

    def to_store(self) -> dict[str, str]:
        """Serialize to the persisted camelCase form."""
        return self.model_dump(by_alias=True)


class RegisteredClient(BaseModel):
    """OAuth device-grant client registered with the SSO OIDC endpoint.

    Timestamps are unix seconds, as returned by the endpoint.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    client_name: str = Field(..., alias="clientName")
    client_id: str = Field(..., alias="clientId")
    client_secret: str = Field(..., alias="clientSecret", repr=False)
    issued_at: int = Field(..., alias="issuedAt")
    expires_at: int = Field(..., alias="expiresAt")

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check whether the registration can no longer be used."""
        current = now or utcnow()
        return current.timestamp() >= self.expires_at

    def to_store(self) -> dict[str, Any]:
        """Serialize to the persisted camelCase form."""
        return self.model_dump(by_alias=True)


class TokenState(BaseModel):
    """Access token obtained from a completed device authorization."""

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(..., repr=False)
    expires_at: datetime

    def expires_at_iso(self) -> str:
        """Expiry in the ISO-8601 form used by the AWS SSO cache."""
        return self.expires_at.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class Profile(BaseModel):
    """Named AWS CLI profile for one account/role pair."""

    name: str
    sso_start_url: str
    sso_region: str
    sso_account_id: str
    sso_role_name: str
    region: str
    output: str = "json"

    # Short names the profile name was built from; not written to disk
    account_name: str = Field(..., exclude=True)
    role_name: str = Field(..., exclude=True)

    def contents(self) -> dict[str, str]:
        """Key/value pairs written to the profile's config section."""
        return {
            "sso_start_url": self.sso_start_url,
            "sso_region": self.sso_region,
            "sso_account_id": self.sso_account_id,
            "sso_role_name": self.sso_role_name,
            "region": self.region,
            "output": self.output,
        }
