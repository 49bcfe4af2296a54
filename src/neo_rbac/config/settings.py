"""
Runtime configuration for the neo-rbac engine.

Settings are read from the environment (prefix ``RBAC_``) or a ``.env`` file
and cached for the lifetime of the process.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RbacSettings(BaseSettings):
    """Engine settings shared by the authorization service and its adapters."""
    
    model_config = SettingsConfigDict(
        env_prefix="RBAC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    # Authorization
    superadmin_role_id: str = Field(default="platformAdmin")
    
    # Permission cache (no TTL by default, invalidation is explicit)
    cache_ttl_seconds: Optional[float] = Field(default=None)
    cache_max_entries: Optional[int] = Field(default=None)
    redis_key_prefix: str = Field(default="neo_rbac")
    
    # Store
    db_schema: str = Field(default="rbac")
    
    # Logging
    log_verbosity: str = Field(default="NORMAL")
    log_format: str = Field(default="simple")
    
    @field_validator("cache_ttl_seconds")
    @classmethod
    def validate_ttl(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("cache_ttl_seconds must be positive or unset")
        return value
    
    @field_validator("cache_max_entries")
    @classmethod
    def validate_max_entries(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError("cache_max_entries must be positive or unset")
        return value
    
    @field_validator("db_schema")
    @classmethod
    def validate_schema(cls, value: str) -> str:
        # Interpolated into SQL, so restrict to a plain identifier
        if not value.replace("_", "").isalnum() or value[0].isdigit():
            raise ValueError(f"Invalid schema name: {value}")
        return value


@lru_cache()
def get_settings() -> RbacSettings:
    """Get cached settings instance."""
    return RbacSettings()
