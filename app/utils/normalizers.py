"""
Normalization of loosely-shaped request payloads.

Property and agent forms arrive as multipart fields, JSON bodies, or a mix:
list fields may be arrays, JSON strings or comma separated strings; nested
records may be JSON strings, bracketed form keys (``location[city]``) or flat
fields. Everything here runs once at the edge of a handler so services only
ever see one canonical, snake_case shape.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional
import json
import re

from app.models.agent import COMPANY_FIELDS, SOCIAL_MEDIA_FIELDS

_NESTED_KEY = re.compile(r"^(?P<parent>[A-Za-z_][A-Za-z0-9_]*)(?:\[(?P<bracket>[A-Za-z0-9_]+)\]|\.(?P<dotted>[A-Za-z0-9_]+))$")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

LOCATION_FIELDS = ("address", "city", "state", "district", "taluka", "village", "zip_code")
GOV_DETAIL_FIELDS = ("khaata_number", "survey_number", "area")
CONTACT_FIELDS = ("name", "email", "phone", "whatsapp_number")

PROPERTY_SCALAR_FIELDS = (
    "title", "description", "inserted_by", "price", "status", "type",
    "total_area", "area_vigha", "area_acre", "bedrooms", "bathrooms", "balconies",
    "is_featured",
)
PROPERTY_NESTED_FIELDS = ("location", "gov_details", "contact_info", "land_info", "coordinates")

AGENT_SCALAR_FIELDS = (
    "bio", "experience", "response_time", "is_verified", "is_active",
    "properties_sold", "total_sales",
)
AGENT_NESTED_FIELDS = ("company", "social_media")


def to_snake(key: str) -> str:
    """Convert ``camelCase`` keys to ``snake_case``; snake_case passes through."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_list(value: Any) -> List[str]:
    """
    Parse a list field that may be an array, a JSON array string or CSV.

    Blank entries are dropped and every entry is stripped.
    """
    if is_blank(value):
        return []

    if isinstance(value, (list, tuple, set)):
        items: Iterable[Any] = value
        # Repeated multipart fields can each carry CSV or JSON
        if len(value) == 1 and isinstance(next(iter(value)), str):
            return parse_list(next(iter(value)))
    elif isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                decoded = json.loads(text)
            except ValueError:
                decoded = None
            if isinstance(decoded, list):
                items = decoded
            else:
                items = text.strip("[]").split(",")
        else:
            items = text.split(",")
    else:
        items = [value]

    result = []
    for item in items:
        if is_blank(item):
            continue
        result.append(str(item).strip().strip('"').strip())
    return [item for item in result if item]


def parse_object(value: Any) -> Dict[str, Any]:
    """Parse a nested record given as a dict or a JSON object string; keys become snake_case."""
    if is_blank(value):
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return {}
    if not isinstance(value, Mapping):
        return {}
    return {to_snake(str(k)): v for k, v in value.items()}


def parse_bool(value: Any) -> Optional[bool]:
    if is_blank(value):
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes", "on")


def canonicalize(raw: Mapping[str, Any], nested_fields: Iterable[str]) -> Dict[str, Any]:
    """
    Fold bracketed and dotted keys into nested dicts and snake_case every key.

    ``location[zipCode]=1`` and ``location={"zipCode": 1}`` both become
    ``{"location": {"zip_code": 1}}``; bracketed values win over the JSON string.
    """
    nested_fields = set(nested_fields)
    flat: Dict[str, Any] = {}
    nested: Dict[str, Dict[str, Any]] = {}

    for key, value in raw.items():
        match = _NESTED_KEY.match(key)
        if match:
            parent = to_snake(match.group("parent"))
            child = to_snake(match.group("bracket") or match.group("dotted"))
            nested.setdefault(parent, {})[child] = value
        else:
            flat[to_snake(key)] = value

    for field in nested_fields:
        merged = parse_object(flat.pop(field, None))
        for sub_key, sub_value in nested.get(field, {}).items():
            if not is_blank(sub_value):
                merged[sub_key] = sub_value
        if merged:
            flat[field] = merged

    return flat


def _pick(source: Mapping[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    return {field: source[field] for field in fields if not is_blank(source.get(field))}


def compose_address(location: Mapping[str, Any]) -> Optional[str]:
    """Build a single address line from discrete location parts."""
    parts = [location.get(field) for field in ("village", "taluka", "district", "city", "state", "zip_code")]
    parts = [str(part).strip() for part in parts if not is_blank(part)]
    return ", ".join(parts) or None


def normalize_property_payload(raw: Mapping[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Canonical property payload for PropertyCreate / PropertyUpdate.

    Args:
        raw: Form fields or JSON body
        partial: When True (updates) no address is composed and absent
            fields stay absent
    """
    data = canonicalize(raw, PROPERTY_NESTED_FIELDS)
    result = _pick(data, PROPERTY_SCALAR_FIELDS)

    location = dict(data.get("location") or {})
    for field in LOCATION_FIELDS:
        if is_blank(location.get(field)) and not is_blank(data.get(field)):
            location[field] = data[field]

    coordinates = parse_object(location.pop("coordinates", None)) or dict(data.get("coordinates") or {})
    for axis in ("latitude", "longitude"):
        value = coordinates.get(axis, location.pop(axis, None))
        if is_blank(value):
            value = data.get(axis)
        if not is_blank(value):
            result[axis] = value

    location = _pick(location, LOCATION_FIELDS)
    if not partial and is_blank(location.get("address")):
        composed = compose_address(location)
        if composed:
            location["address"] = composed
    result.update(location)

    gov_details = _pick(data.get("gov_details") or {}, GOV_DETAIL_FIELDS)
    if gov_details:
        result["gov_details"] = gov_details

    contact_info = _pick(data.get("contact_info") or {}, CONTACT_FIELDS)
    if contact_info:
        result["contact_info"] = contact_info

    for list_field in ("amenities", "disadvantages"):
        if list_field in data:
            result[list_field] = parse_list(data[list_field])

    # Land details only make sense for land listings
    land_info = data.get("land_info")
    if land_info and str(result.get("type", "")).lower() == "land":
        result["land_info"] = {k: v for k, v in land_info.items() if not is_blank(v)}

    if "is_featured" in result:
        result["is_featured"] = parse_bool(result["is_featured"])

    return result


def normalize_agent_payload(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Canonical agent payload for AgentCreate / AgentUpdate.

    Social media links may arrive as a nested JSON string or as flat
    ``facebook``/``twitter``/... fields; company details as a nested object
    or flat ``company_*`` fields.
    """
    data = canonicalize(raw, AGENT_NESTED_FIELDS)
    result = _pick(data, AGENT_SCALAR_FIELDS)

    for list_field in ("specialties", "languages"):
        if list_field in data:
            result[list_field] = parse_list(data[list_field])

    social_media = dict(data.get("social_media") or {})
    for network in SOCIAL_MEDIA_FIELDS:
        if is_blank(social_media.get(network)) and not is_blank(data.get(network)):
            social_media[network] = data[network]
    social_media = _pick(social_media, SOCIAL_MEDIA_FIELDS)
    if social_media:
        result["social_media"] = social_media

    company = dict(data.get("company") or {})
    for field in COMPANY_FIELDS:
        flat_value = data.get(f"company_{field}")
        # Registration forms send the office location as plain district/taluka/village
        if is_blank(flat_value) and field in ("district", "taluka", "village"):
            flat_value = data.get(field)
        if is_blank(company.get(field)) and not is_blank(flat_value):
            company[field] = flat_value
    company = _pick(company, COMPANY_FIELDS)
    if company:
        result["company"] = company

    if "achievements" in data:
        achievements = data["achievements"]
        if isinstance(achievements, str):
            try:
                achievements = json.loads(achievements)
            except ValueError:
                achievements = []
        if isinstance(achievements, list):
            result["achievements"] = [
                {to_snake(str(k)): v for k, v in item.items()}
                for item in achievements
                if isinstance(item, Mapping)
            ]

    for flag in ("is_verified", "is_active"):
        if flag in result:
            result[flag] = parse_bool(result[flag])

    return result
