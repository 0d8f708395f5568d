"""Data models for Vault responses, templates and list output."""

from typing import Any, Dict, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CertificateResponse(BaseModel):
    """Response of cert/<serial>, cert/ca and cert/ca_chain."""

    certificate: str = Field(..., description="PEM-encoded certificate")
    revocation_time: int = Field(default=0, description="Unix time of revocation, 0 if never revoked")

    @field_validator("revocation_time", mode="before")
    @classmethod
    def _null_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


class ListResponse(BaseModel):
    """Response of a LIST call."""

    keys: list[str] = Field(default_factory=list, description="Listed identifiers")


class IssueResponse(BaseModel):
    """Response of issue/<role>."""

    certificate: str = Field(..., description="PEM-encoded certificate")
    private_key: str = Field(..., description="PEM-encoded private key")
    serial_number: str = Field(..., description="Colon separated hex serial")
    issuing_ca: Optional[str] = Field(None, description="PEM-encoded issuing CA")
    ca_chain: Optional[list[str]] = Field(None, description="PEM-encoded CA chain")


class SharedSecret(BaseModel):
    """Secret holding an OpenVPN shared key under the name 'key'."""

    key: str = Field(..., description="OpenVPN static key")

    @classmethod
    def from_secret_data(cls, data: Dict[str, Any]) -> "SharedSecret":
        """Build from KV v1 data or unwrap KV v2 data.data."""
        nested = data.get("data")
        if "key" not in data and isinstance(nested, dict):
            data = nested
        return cls.model_validate(data)


class TemplateContext(BaseModel):
    """Values available to client.conf / server.conf templates."""

    model_config = ConfigDict(frozen=True)

    ca_chain: str = Field(..., description="CA chain, or the CA certificate")
    certificate: str = Field(..., description="PEM-encoded certificate")
    private_key: str = Field(..., description="PEM-encoded private key")
    tls_auth: Optional[str] = Field(None, description="OpenVPN shared key")
    common_name: str = Field(..., description="FQDN the certificate was issued for")


class CertificateRow(BaseModel):
    """One line of list output."""

    fqdn: str = Field(..., serialization_alias="FQDN")
    not_before: datetime = Field(..., serialization_alias="NotBefore")
    not_after: datetime = Field(..., serialization_alias="NotAfter")
    serial: str = Field(..., serialization_alias="Serial")
