from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    # The web and mobile clients send camelCase keys
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExchangeTokenRequest(_CamelModel):
    code: str = Field(min_length=1)
    app_id: str = Field(min_length=1)
    app_secret: str = Field(min_length=1)
    user_id: Optional[str] = None


class SaveTokenRequest(_CamelModel):
    user_id: str = Field(min_length=1)
    access_token: str = Field(min_length=1)
    app_id: str = Field(min_length=1)
    refresh_token: Optional[str] = None
    token_type: Optional[str] = None
    expires_in: Optional[int] = None
    scope: Optional[str] = None


class RevokeTokenRequest(_CamelModel):
    user_id: Optional[str] = None
    token_id: Optional[str] = None
    app_id: Optional[str] = None

    @model_validator(mode="after")
    def _require_target(self) -> "RevokeTokenRequest":
        if not self.user_id and not self.token_id:
            raise ValueError("Either userId or tokenId is required")
        return self


class PlaidExchangeRequest(BaseModel):
    public_token: str = Field(min_length=1)
    institution_id: Optional[str] = None
    institution_name: Optional[str] = None
