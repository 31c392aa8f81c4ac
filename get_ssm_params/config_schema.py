from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_REGION = "eu-central-1"


class FetchMode(str, Enum):
    PARAMETERS = "parameters"
    BLOB = "blob"


def _split_csv(value: object) -> object:
    # Entries are kept verbatim; an empty string means "nothing requested".
    if value is None:
        return []
    if isinstance(value, str):
        return value.split(",") if value else []
    return value


class Settings(BaseModel):
    """
    Everything a single invocation needs, assembled once at startup.

    Values come from explicit flags first, then SSM_* environment variables,
    then the hardcoded defaults below. Region and role are only checked when
    they will be used; a pass-through exec ignores them.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    environment: str = ""
    service: str = ""
    params: list[str] = Field(default_factory=list)
    extra_params: list[str] = Field(default_factory=list)
    region: str = DEFAULT_REGION
    role_arn: str | None = None
    mode: FetchMode = FetchMode.PARAMETERS
    blob_args: list[str] = Field(default_factory=list)
    log_file: str | None = None
    command: list[str] = Field(default_factory=list)

    @field_validator("params", "extra_params", mode="before")
    @classmethod
    def _csv_to_list(cls, value: object) -> object:
        return _split_csv(value)

    @field_validator("region")
    @classmethod
    def _strip_region(cls, value: str) -> str:
        return (value or "").strip()

    @field_validator("role_arn", "log_file", mode="before")
    @classmethod
    def _empty_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _blob_mode_needs_three_args(self) -> "Settings":
        if self.mode is FetchMode.BLOB and len(self.blob_args) != 3:
            raise ValueError("-s3-get expects exactly 3 arguments: bucket key localFile")
        return self

    @model_validator(mode="after")
    def _aws_settings_usable(self) -> "Settings":
        if self.is_passthrough:
            return self
        if not self.region:
            raise ValueError("AWS region must not be empty")
        if self.role_arn is not None and not self.role_arn.startswith("arn:"):
            raise ValueError("role ARN must be an IAM role ARN (arn:...)")
        return self

    @property
    def has_requested_params(self) -> bool:
        return bool(self.params or self.extra_params)

    @property
    def is_passthrough(self) -> bool:
        return (
            self.mode is FetchMode.PARAMETERS
            and not self.has_requested_params
            and bool(self.command)
        )

    @property
    def prefix(self) -> str:
        return f"{self.environment}_{self.service}_"
