"""
inlandv/schemas_cms.py

Pydantic schemas for the CMS API.

Create schemas mark the columns a row cannot exist without; the matching
Update schemas make every field optional and routes apply only the fields
the client actually sent (`.dict(exclude_unset=True)`).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, validator

from inlandv.models import (
    Furniture,
    MainCategory,
    ParkScope,
    PropertyStatus,
    PropertyType,
    SectionFormat,
    UserRole,
)


def _strip(v):
    if isinstance(v, str):
        return v.strip()
    return v


def _non_empty(v):
    if v is not None and isinstance(v, str) and not v.strip():
        raise ValueError("must not be empty")
    return v


class CmsModel(BaseModel):
    class Config:
        extra = "ignore"
        use_enum_values = True


# ========================================================================
# AUTH
# ========================================================================

class LoginRequest(CmsModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)

    @validator("email", pre=True)
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class RegisterRequest(LoginRequest):
    password: str = Field(..., min_length=6, description="At least 6 characters")
    name: Optional[str] = Field(None, max_length=255)
    role: UserRole = UserRole.editor


# ========================================================================
# NEWS
# ========================================================================

class NewsCategoryCreate(CmsModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    display_order: int = 0

    trim_fields = validator("name", "slug", pre=True, allow_reuse=True)(_strip)
    require_non_empty = validator("name", allow_reuse=True)(_non_empty)


class NewsCategoryUpdate(CmsModel):
    name: Optional[str] = Field(None, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    display_order: Optional[int] = None

    trim_fields = validator("name", "slug", pre=True, allow_reuse=True)(_strip)
    require_non_empty = validator("name", allow_reuse=True)(_non_empty)


class NewsCreate(CmsModel):
    title: str = Field(..., max_length=500)
    category_id: str
    content: str
    slug: Optional[str] = Field(None, max_length=500)
    thumbnail: Optional[str] = None
    excerpt: Optional[str] = None
    featured: bool = False
    author: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    published_at: Optional[str] = None

    trim_fields = validator("title", "slug", "category_id", pre=True, allow_reuse=True)(_strip)
    require_non_empty = validator("title", "category_id", "content", allow_reuse=True)(_non_empty)


class NewsUpdate(CmsModel):
    title: Optional[str] = Field(None, max_length=500)
    category_id: Optional[str] = None
    content: Optional[str] = None
    slug: Optional[str] = Field(None, max_length=500)
    thumbnail: Optional[str] = None
    excerpt: Optional[str] = None
    featured: Optional[bool] = None
    author: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    published_at: Optional[str] = None

    trim_fields = validator("title", "slug", "category_id", pre=True, allow_reuse=True)(_strip)
    require_non_empty = validator("title", "category_id", "content", allow_reuse=True)(_non_empty)


# ========================================================================
# PAGES / SECTIONS
# ========================================================================

class PageCreate(CmsModel):
    slug: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1, max_length=255)
    page_type: str = "static"
    published: bool = False
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None

    trim_fields = validator("slug", "title", pre=True, allow_reuse=True)(_strip)


class PageUpdate(CmsModel):
    slug: Optional[str] = Field(None, min_length=1, max_length=255)
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    page_type: Optional[str] = None
    published: Optional[bool] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None

    trim_fields = validator("slug", "title", pre=True, allow_reuse=True)(_strip)


class SectionFields(CmsModel):
    """Section body. `data` + `format` regenerate `content` for structured section types."""
    section_key: Optional[str] = Field(None, max_length=100)
    name: Optional[str] = Field(None, max_length=255)
    section_type: Optional[str] = Field(None, max_length=50)
    display_order: Optional[int] = None
    content: Optional[str] = None
    images: Optional[List[str]] = None
    published: Optional[bool] = None
    data: Optional[Dict[str, Any]] = None
    format: Optional[SectionFormat] = None

    trim_fields = validator("section_key", "name", "section_type", pre=True, allow_reuse=True)(_strip)
    require_non_empty = validator("section_key", "name", "section_type", allow_reuse=True)(_non_empty)


class SectionCreate(SectionFields):
    page_id: str
    section_key: str = Field(..., max_length=100)
    name: str = Field(..., max_length=255)
    section_type: str = Field(..., max_length=50)


class SectionUpdate(SectionFields):
    pass


class DisplayOrderItem(BaseModel):
    id: str
    display_order: int


class SectionOrderRequest(BaseModel):
    sections: List[DisplayOrderItem] = Field(..., min_items=1)


# ========================================================================
# SECTION DATA (hero / story / team)
# ========================================================================

def _as_text(v):
    if v is None:
        return ""
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


def _as_list(v):
    return [] if v is None else v


class HeroStat(CmsModel):
    number: str = ""
    label: str = ""

    coerce_text = validator("number", "label", pre=True, allow_reuse=True)(_as_text)


class HeroData(CmsModel):
    logo_url: str = ""
    logo_id: str = ""
    logo_alt: str = ""
    description: str = ""
    background_image: str = ""
    stats: List[HeroStat] = []

    coerce_text = validator(
        "logo_url", "logo_id", "logo_alt", "description", "background_image", pre=True, allow_reuse=True
    )(_as_text)
    stats_list = validator("stats", pre=True, allow_reuse=True)(_as_list)


class StoryCard(CmsModel):
    title: str = ""
    content: str = ""

    coerce_text = validator("title", "content", pre=True, allow_reuse=True)(_as_text)


class StoryData(CmsModel):
    paragraphs: List[str] = []
    vision: Optional[StoryCard] = None
    mission: Optional[StoryCard] = None
    coreValues: Optional[StoryCard] = None

    @validator("paragraphs", pre=True)
    def paragraphs_are_text(cls, v):
        if v is None:
            return []
        if not isinstance(v, list) or not all(isinstance(p, str) for p in v):
            raise ValueError("paragraphs must be a list of strings")
        return v


class TeamMember(CmsModel):
    id: str = ""
    name: str = ""
    position: str = ""
    description: str = ""
    image_url: str = ""
    image_id: str = ""

    coerce_text = validator(
        "id", "name", "position", "description", "image_url", "image_id", pre=True, allow_reuse=True
    )(_as_text)


class TeamData(CmsModel):
    members: List[TeamMember] = []

    members_list = validator("members", pre=True, allow_reuse=True)(_as_list)


SECTION_DATA_MODELS = {
    "hero": HeroData,
    "story": StoryData,
    "team": TeamData,
}


# ========================================================================
# MENUS
# ========================================================================

class MenuLocationCreate(CmsModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    is_active: bool = True

    trim_fields = validator("name", "slug", pre=True, allow_reuse=True)(_strip)


class MenuLocationUpdate(CmsModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None

    trim_fields = validator("name", "slug", pre=True, allow_reuse=True)(_strip)


class MenuItemFields(CmsModel):
    parent_id: Optional[str] = None
    title: Optional[str] = Field(None, max_length=255)
    url: Optional[str] = None
    icon: Optional[str] = None
    type: Optional[str] = None
    entity_id: Optional[str] = None
    target: Optional[str] = None
    rel: Optional[str] = None
    css_classes: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None

    trim_fields = validator("title", pre=True, allow_reuse=True)(_strip)
    require_non_empty = validator("title", allow_reuse=True)(_non_empty)


class MenuItemCreate(MenuItemFields):
    menu_location_id: str
    title: str = Field(..., max_length=255)
    type: str = "custom"
    target: str = "_self"
    sort_order: int = 0
    is_active: bool = True


class MenuItemUpdate(MenuItemFields):
    pass


class MenuOrderItem(BaseModel):
    id: str
    sort_order: int
    parent_id: Optional[str] = None


class MenuOrderRequest(BaseModel):
    items: List[MenuOrderItem] = Field(..., min_items=1)


# ========================================================================
# ASSETS
# ========================================================================

class AssetUpdate(CmsModel):
    alt_text: Optional[str] = None
    caption: Optional[str] = None
    folder_id: Optional[str] = None


class FolderCreate(CmsModel):
    name: str = Field(..., min_length=1, max_length=255)
    parent_id: Optional[str] = None

    trim_fields = validator("name", pre=True, allow_reuse=True)(_strip)


# ========================================================================
# SETTINGS / LOOKUP
# ========================================================================

class SettingUpsert(BaseModel):
    value: Dict[str, Any] = Field(default_factory=dict)


class LookupEntryCreate(CmsModel):
    code: str = Field(..., min_length=1, max_length=100)
    name_vi: str = Field(..., min_length=1, max_length=255)
    name_en: Optional[str] = None
    display_order: int = 0
    is_active: bool = True

    @validator("code", pre=True)
    def normalize_code(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class LookupEntryUpdate(CmsModel):
    name_vi: Optional[str] = Field(None, min_length=1, max_length=255)
    name_en: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


# ========================================================================
# CATALOG (industrial parks, properties, products)
# ========================================================================

class ImageInput(BaseModel):
    url: str = Field(..., min_length=1)
    caption: Optional[str] = None
    display_order: Optional[int] = None
    is_primary: bool = False


class ImagesReplace(BaseModel):
    images: List[ImageInput] = Field(default_factory=list)


class IndustrialParkFields(CmsModel):
    code: Optional[str] = Field(None, max_length=50)
    name: Optional[str] = Field(None, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    scope: Optional[ParkScope] = None
    has_rental: Optional[bool] = None
    has_transfer: Optional[bool] = None
    province: Optional[str] = Field(None, max_length=100)
    district: Optional[str] = None
    ward: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    google_maps_link: Optional[str] = None
    total_area: Optional[float] = Field(None, ge=0)
    available_area: Optional[float] = Field(None, ge=0)
    occupancy_rate: Optional[float] = Field(None, ge=0, le=100)
    rental_price_min: Optional[float] = Field(None, ge=0)
    rental_price_max: Optional[float] = Field(None, ge=0)
    transfer_price_min: Optional[float] = Field(None, ge=0)
    transfer_price_max: Optional[float] = Field(None, ge=0)
    infrastructure: Optional[Dict[str, Any]] = None
    allowed_industries: Optional[List[str]] = None
    description: Optional[str] = None
    description_full: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    website_url: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    published_at: Optional[str] = None

    trim_fields = validator("code", "name", "slug", "province", pre=True, allow_reuse=True)(_strip)
    require_non_empty = validator("code", "name", "province", allow_reuse=True)(_non_empty)


class IndustrialParkCreate(IndustrialParkFields):
    code: str = Field(..., max_length=50)
    name: str = Field(..., max_length=255)
    province: str = Field(..., max_length=100)
    scope: ParkScope = ParkScope.trong_kcn
    total_area: float = Field(0, ge=0)


class PropertyFields(CmsModel):
    code: Optional[str] = Field(None, max_length=50)
    name: Optional[str] = Field(None, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    main_category: Optional[MainCategory] = None
    sub_category: Optional[str] = None
    industrial_park_id: Optional[str] = None
    industrial_cluster_id: Optional[str] = None
    type: Optional[PropertyType] = None
    category: Optional[str] = None
    status: Optional[PropertyStatus] = None
    legal_status: Optional[str] = None
    province: Optional[str] = Field(None, max_length=100)
    district: Optional[str] = None
    ward: Optional[str] = None
    street: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    area: Optional[float] = Field(None, ge=0)
    land_area: Optional[float] = Field(None, ge=0)
    construction_area: Optional[float] = Field(None, ge=0)
    width: Optional[float] = Field(None, ge=0)
    length: Optional[float] = Field(None, ge=0)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    floors: Optional[int] = Field(None, ge=0)
    orientation: Optional[str] = None
    has_rental: Optional[bool] = None
    has_transfer: Optional[bool] = None
    sale_price: Optional[float] = Field(None, ge=0)
    sale_price_min: Optional[float] = Field(None, ge=0)
    sale_price_max: Optional[float] = Field(None, ge=0)
    sale_price_per_sqm: Optional[float] = Field(None, ge=0)
    rental_price: Optional[float] = Field(None, ge=0)
    rental_price_min: Optional[float] = Field(None, ge=0)
    rental_price_max: Optional[float] = Field(None, ge=0)
    rental_price_per_sqm: Optional[float] = Field(None, ge=0)
    negotiable: Optional[bool] = None
    furniture: Optional[Furniture] = None
    description: Optional[str] = None
    description_full: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    published_at: Optional[str] = None
    location_types: Optional[List[str]] = Field(None, description="Explicit location-type tags")

    trim_fields = validator("code", "name", "slug", "province", pre=True, allow_reuse=True)(_strip)
    require_non_empty = validator("code", "name", "province", allow_reuse=True)(_non_empty)


class PropertyCreate(PropertyFields):
    code: str = Field(..., max_length=50)
    name: str = Field(..., max_length=255)
    province: str = Field(..., max_length=100)
    type: PropertyType
    main_category: MainCategory = MainCategory.bds
    status: PropertyStatus = PropertyStatus.available
    area: float = Field(0, ge=0)


class ProductFields(CmsModel):
    code: Optional[str] = Field(None, max_length=50)
    name: Optional[str] = Field(None, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    has_rental: Optional[bool] = None
    has_transfer: Optional[bool] = None
    has_factory: Optional[bool] = None
    province: Optional[str] = None
    district: Optional[str] = None
    ward: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    google_maps_link: Optional[str] = None
    total_area: Optional[float] = Field(None, ge=0)
    available_area: Optional[float] = Field(None, ge=0)
    occupancy_rate: Optional[float] = Field(None, ge=0, le=100)
    rental_price_min: Optional[float] = Field(None, ge=0)
    rental_price_max: Optional[float] = Field(None, ge=0)
    transfer_price_min: Optional[float] = Field(None, ge=0)
    transfer_price_max: Optional[float] = Field(None, ge=0)
    land_price: Optional[float] = Field(None, ge=0)
    infrastructure: Optional[Dict[str, Any]] = None
    allowed_industries: Optional[List[str]] = None
    product_types: Optional[List[str]] = None
    transaction_types: Optional[List[str]] = None
    location_types: Optional[List[str]] = None
    description: Optional[str] = None
    description_full: Optional[str] = None
    advantages: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    website_url: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    images: Optional[List[Any]] = None
    documents: Optional[List[Any]] = None
    published_at: Optional[str] = None

    trim_fields = validator("code", "name", "slug", pre=True, allow_reuse=True)(_strip)
    require_non_empty = validator("code", "name", allow_reuse=True)(_non_empty)

    @validator("allowed_industries", "product_types", "transaction_types", "location_types")
    def clean_codes(cls, v):
        if v is None:
            return v
        return [item.strip() for item in v if isinstance(item, str) and item.strip()]


class ProductCreate(ProductFields):
    code: str = Field(..., max_length=50)
    name: str = Field(..., max_length=255)
