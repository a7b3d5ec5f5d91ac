"""Project arbitrary backend property payloads onto PropertySummary."""

from datetime import datetime
from typing import Any

from loguru import logger

from stay_market.models.property import PropertySummary
from stay_market.probes import FieldProbe, as_list, as_number, as_text, lookup, resolve_all

_PROPERTY_PROBES: dict[str, FieldProbe] = {
    "id": FieldProbe(("_id", "id", "propertyId"), coerce=as_text, default="unknown"),
    "title": FieldProbe(("title", "name"), coerce=as_text, default="Untitled Property"),
    "price": FieldProbe(("price.amount", "price", "weekdayPrice", "pricePerNight")),
    "currency": FieldProbe(("currency", "price.currency"), coerce=as_text, default="USD"),
    "rating": FieldProbe(("rating", "averageRating", "stats.rating")),
    "review_count": FieldProbe(("reviewCount", "reviewsCount", "numReviews")),
    "images": FieldProbe(("images", "photos"), coerce=as_list, default_factory=list),
    "created_at": FieldProbe(("createdAt", "created_at"), coerce=as_text, default=None),
}


def _location_text(raw: dict[str, Any]) -> str:
    location = raw.get("location")
    if isinstance(location, str) and location.strip():
        return location.strip()
    if isinstance(raw.get("locationString"), str) and raw["locationString"].strip():
        return raw["locationString"].strip()

    parts: list[str] = []
    for key in ("city", "state", "country"):
        for path in (f"address.{key}", key, f"location.{key}"):
            value = as_text(lookup(raw, path))
            if value:
                parts.append(value)
                break
    return ", ".join(parts) if parts else "Unknown location"


def _image_urls(items: list[Any]) -> list[str]:
    urls: list[str] = []
    for item in items:
        if isinstance(item, str) and item:
            urls.append(item)
        elif isinstance(item, dict):
            url = as_text(item.get("url") or item.get("uri"))
            if url:
                urls.append(url)
    return urls


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def to_property_summary(raw: dict[str, Any]) -> PropertySummary:
    fields = resolve_all(_PROPERTY_PROBES, raw)
    return PropertySummary(
        id=fields["id"],
        title=fields["title"],
        price=fields["price"],
        currency=fields["currency"],
        rating=fields["rating"],
        review_count=int(fields["review_count"]),
        location=_location_text(raw),
        images=_image_urls(fields["images"]),
        created_at=_parse_timestamp(fields["created_at"]),
    )


def to_property_summaries(records: list[Any]) -> list[PropertySummary]:
    results: list[PropertySummary] = []
    for record in records:
        if not isinstance(record, dict):
            logger.warning(f"Skipping non-object property record: {record!r}")
            continue
        results.append(to_property_summary(record))
    return results
