"""Pydantic models describing Fineract error payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FineractBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class FineractErrorDetail(FineractBaseModel):
    developer_message: str | None = Field(default=None, alias="developerMessage")
    default_user_message: str | None = Field(default=None, alias="defaultUserMessage")
    user_message_globalisation_code: str | None = Field(
        default=None, alias="userMessageGlobalisationCode"
    )
    parameter_name: str | None = Field(default=None, alias="parameterName")


class FineractErrorResponse(FineractBaseModel):
    http_status_code: str | None = Field(default=None, alias="httpStatusCode")
    developer_message: str | None = Field(default=None, alias="developerMessage")
    default_user_message: str | None = Field(default=None, alias="defaultUserMessage")
    user_message_globalisation_code: str | None = Field(
        default=None, alias="userMessageGlobalisationCode"
    )
    errors: list[FineractErrorDetail] = Field(default_factory=list)

    def user_message(self) -> str | None:
        """Most specific user-facing message, preferring the globalisation code."""

        if self.user_message_globalisation_code:
            return self.user_message_globalisation_code
        if self.default_user_message:
            return self.default_user_message
        for detail in self.errors:
            if detail.default_user_message:
                return detail.default_user_message
        return self.developer_message
