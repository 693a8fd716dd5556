"""License state models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LicenseStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    INVALID = "invalid"


class LicenseData(BaseModel):
    """Cached result of the last activation or check.

    Attributes:
        key: License key (trimmed).
        status: Outcome of the last server answer.
        expiry_date: Expiry date, when the server reports one.
        user_email: Licensee email, when the server reports one.
        last_checked: Epoch milliseconds of the last answer.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    key: str = ""
    status: LicenseStatus = LicenseStatus.INVALID
    expiry_date: str | None = None
    user_email: str | None = None
    last_checked: int = Field(default=0, ge=0)

    @property
    def is_active(self) -> bool:
        return self.status == LicenseStatus.ACTIVE
