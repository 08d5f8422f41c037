"""Wire models for the Cloud Controller v2 API and the UAA token service."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class CCInfo(BaseModel):
    """Discovery snapshot built from ``GET /v2/info`` plus the connection inputs."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    api_endpoint: str = ""
    user: str = ""
    password: SecretStr = SecretStr("")
    skip_ssl_validation: bool = False

    api_version: str = ""
    authorization_endpoint: str = ""
    token_endpoint: str = ""
    loggregator_endpoint: str = Field("", alias="logging_endpoint")
    doppler_endpoint: str = Field("", alias="doppler_logging_endpoint")
    min_cli_version: str = ""
    min_recommended_cli_version: str = ""
    ssh_oauth_client: str = Field("", alias="app_ssh_oauth_client")
    routing_api_endpoint: str = Field("", alias="routing_endpoint")

    @field_validator(
        "api_version",
        "authorization_endpoint",
        "token_endpoint",
        "loggregator_endpoint",
        "doppler_endpoint",
        "min_cli_version",
        "min_recommended_cli_version",
        "ssh_oauth_client",
        "routing_api_endpoint",
        mode="before",
    )
    @classmethod
    def _null_as_empty(cls, value):
        # The discovery document carries explicit nulls for absent endpoints.
        return "" if value is None else value


class TokenGrant(BaseModel):
    """Response body of ``POST /oauth/token``."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    token_type: str = "bearer"
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    scope: Optional[str] = None
    jti: Optional[str] = None

    @property
    def authorization(self) -> str:
        return f"{self.token_type} {self.access_token}"


class TokenClaims(BaseModel):
    """Subset of access token claims the session cares about."""

    model_config = ConfigDict(extra="ignore")

    user_id: Optional[str] = None
    user_name: Optional[str] = None
    client_id: Optional[str] = None
    scope: list[str] = Field(default_factory=list)
    exp: Optional[int] = None


class FeatureFlag(BaseModel):
    """One element of ``GET /v2/config/feature_flags``."""

    model_config = ConfigDict(extra="ignore", strict=True)

    name: str
    enabled: bool


class CCErrorResponse(BaseModel):
    """Error body returned by the Cloud Controller."""

    model_config = ConfigDict(extra="ignore")

    code: Optional[int] = None
    error_code: Optional[str] = None
    description: Optional[str] = None


class UAAErrorResponse(BaseModel):
    """Error body returned by UAA."""

    model_config = ConfigDict(extra="ignore")

    error: Optional[str] = None
    error_description: Optional[str] = None


class ResourceMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore")

    guid: str
    url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Resource(BaseModel):
    """A Cloud Controller v2 ``{metadata, entity}`` envelope."""

    model_config = ConfigDict(extra="ignore")

    metadata: ResourceMetadata
    entity: dict[str, Any] = Field(default_factory=dict)

    @property
    def guid(self) -> str:
        return self.metadata.guid

    @property
    def name(self) -> Optional[str]:
        return self.entity.get("name")


class PaginatedResources(BaseModel):
    """One page of a Cloud Controller v2 collection."""

    model_config = ConfigDict(extra="ignore")

    total_results: int = 0
    total_pages: int = 0
    next_url: Optional[str] = None
    resources: list[dict[str, Any]] = Field(default_factory=list)


class UAAGroup(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    display_name: str = Field(alias="displayName")


class UAAUser(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    user_name: str = Field(alias="userName")
    origin: str = "uaa"
    active: bool = True
