"""
Request bodies. Wire names are camelCase; Python attributes stay snake_case.
Route handlers pass model_dump(exclude_unset=True) to services for partial
updates, so only fields the client actually sent are written.
"""

from datetime import datetime
from typing import ClassVar, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from apps.backend.services.loyalty.loyalty_service import MAX_REQUIRED_PUNCHES, MIN_REQUIRED_PUNCHES

Role = Literal["admin", "staff"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PartialUpdate(CamelModel):
    """
    Partial update body. Leaving a field out keeps the stored value; an explicit
    null is only accepted for the columns that are nullable.
    """

    non_nullable: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def _reject_nulls(cls, data):
        if isinstance(data, dict):
            for name in cls.non_nullable:
                alias = to_camel(name)
                if (alias in data and data[alias] is None) or (name in data and data[name] is None):
                    raise ValueError(f"{alias} cannot be null")
        return data


# ===== Auth =====

class AdminLogin(CamelModel):
    login: str = Field(min_length=1)
    password: str = Field(min_length=1)


class MerchantLogin(CamelModel):
    merchant_slug: str = Field(min_length=1)
    login: str = Field(min_length=1)
    password: str = Field(min_length=1)


# ===== Merchants =====

SLUG_PATTERN = r"^[a-zA-Z0-9-]+$"


class MerchantCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=100, pattern=SLUG_PATTERN)
    address: Optional[str] = None
    logo_url: Optional[str] = None
    login: Optional[str] = Field(default=None, min_length=1)
    password: Optional[str] = Field(default=None, min_length=4)


class MerchantUpdate(PartialUpdate):
    non_nullable = ("name", "slug")

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=100, pattern=SLUG_PATTERN)
    address: Optional[str] = None
    logo_url: Optional[str] = None


class FileUploadRequest(CamelModel):
    file_name: str = Field(min_length=1)
    content_type: Optional[str] = None


# ===== Loyalty programs =====

class LoyaltyProgramCreate(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    required_punches: int = Field(ge=MIN_REQUIRED_PUNCHES, le=MAX_REQUIRED_PUNCHES)
    reward_description: str = Field(min_length=1)
    is_active: bool = True


class LoyaltyProgramUpdate(PartialUpdate):
    non_nullable = ("name", "required_punches", "reward_description", "is_active")

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    required_punches: Optional[int] = Field(default=None, ge=MIN_REQUIRED_PUNCHES, le=MAX_REQUIRED_PUNCHES)
    reward_description: Optional[str] = Field(default=None, min_length=1)
    is_active: Optional[bool] = None


# ===== Merchant users =====

class MerchantUserCreate(CamelModel):
    login: str = Field(min_length=1)
    password: str = Field(min_length=4)
    role: Role = "staff"


class MerchantUserUpdate(PartialUpdate):
    non_nullable = ("login", "password", "role", "is_active")

    login: Optional[str] = Field(default=None, min_length=1)
    password: Optional[str] = Field(default=None, min_length=4)
    role: Optional[Role] = None
    is_active: Optional[bool] = None


# ===== Punches =====

class PunchCreate(CamelModel):
    user_id: str = Field(pattern=r"^[0-9a-fA-F-]{36}$")
    loyalty_program_id: str = Field(pattern=r"^[0-9a-fA-F-]{36}$")


# ===== Bundles =====

class QuantityPreset(CamelModel):
    quantity: int = Field(ge=1)
    validity_days: Optional[int] = Field(default=None, ge=1)


class BundleProgramCreate(CamelModel):
    merchant_id: Optional[str] = None
    name: str = Field(min_length=1, max_length=255)
    item_name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    quantity_presets: List[QuantityPreset] = Field(min_length=1)
    is_active: bool = True


class BundleProgramUpdate(PartialUpdate):
    non_nullable = ("name", "item_name", "quantity_presets", "is_active")

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    item_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    quantity_presets: Optional[List[QuantityPreset]] = Field(default=None, min_length=1)
    is_active: Optional[bool] = None


class BundleCreate(CamelModel):
    user_id: str = Field(min_length=1)
    bundle_program_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    validity_days: Optional[int] = Field(default=None, ge=1)


class BundleUpdate(CamelModel):
    remaining_quantity: int


class BundleUse(CamelModel):
    quantity_used: int = Field(default=1, ge=1)


# ===== Benefit cards =====

class BenefitCardCreate(CamelModel):
    user_id: str = Field(min_length=1)
    item_name: str = Field(min_length=1)
    merchant_id: Optional[str] = None
    expires_at: Optional[datetime] = None


# ===== Styles =====

class PunchCardStyleIn(CamelModel):
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    logo_url: Optional[str] = None
    background_image_url: Optional[str] = None
    punch_icons: Optional[dict] = None


class LogoUpdate(CamelModel):
    logo_url: str = Field(min_length=1)
