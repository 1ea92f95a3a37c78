from enum import Enum


# Enums
class UserRole(str, Enum):
    admin = "admin"
    editor = "editor"


class ParkScope(str, Enum):
    trong_kcn = "trong-kcn"
    ngoai_kcn = "ngoai-kcn"


class MainCategory(str, Enum):
    kcn = "kcn"
    bds = "bds"


class PropertyType(str, Enum):
    nha_pho = "nha-pho"
    can_ho = "can-ho"
    dat_nen = "dat-nen"
    biet_thu = "biet-thu"
    shophouse = "shophouse"
    nha_xuong = "nha-xuong"


class PropertyStatus(str, Enum):
    available = "available"
    sold = "sold"
    reserved = "reserved"


class Furniture(str, Enum):
    full = "full"
    basic = "basic"
    empty = "empty"


class LeadSource(str, Enum):
    homepage = "homepage"
    project = "project"
    contact = "contact"


class LocationType(str, Enum):
    trong_kcn = "trong-kcn"
    ngoai_kcn = "ngoai-kcn"
    trong_ccn = "trong-ccn"
    ngoai_ccn = "ngoai-ccn"
    ngoai_kcn_ccn = "ngoai-kcn-ccn"


class SectionFormat(str, Enum):
    html = "html"
    json = "json"


# Display labels for property types (GET /api/properties/types)
PROPERTY_TYPE_LABELS = {
    PropertyType.nha_pho.value: "Nhà phố",
    PropertyType.can_ho.value: "Căn hộ",
    PropertyType.dat_nen.value: "Đất nền",
    PropertyType.biet_thu.value: "Biệt thự",
    PropertyType.shophouse.value: "Shophouse",
    PropertyType.nha_xuong.value: "Nhà xưởng",
}

INFRASTRUCTURE_KEYS = ("road", "power", "water", "internet", "drainage", "waste", "security")

# Lookup tables editable from the CMS, keyed by URL segment
LOOKUP_TABLES = {
    "product-types": "product_types",
    "transaction-types": "transaction_types",
    "location-types": "location_types",
    "industries": "industries",
}

# JSON text / boolean columns per table, for db.decode_row
PARK_JSON_COLUMNS = ("infrastructure", "allowed_industries")
PARK_BOOL_COLUMNS = ("has_rental", "has_transfer")
PROPERTY_BOOL_COLUMNS = ("has_rental", "has_transfer", "negotiable")
PRODUCT_JSON_COLUMNS = (
    "infrastructure",
    "allowed_industries",
    "product_types",
    "transaction_types",
    "location_types",
    "images",
    "documents",
)
PRODUCT_BOOL_COLUMNS = ("has_rental", "has_transfer", "has_factory")
IMAGE_BOOL_COLUMNS = ("is_primary",)
NEWS_BOOL_COLUMNS = ("featured",)
PAGE_BOOL_COLUMNS = ("published",)
MENU_BOOL_COLUMNS = ("is_active",)
LOOKUP_BOOL_COLUMNS = ("is_active",)
ASSET_JSON_COLUMNS = ("sizes",)
