# taskhub/schemas/common.py
from datetime import datetime, timezone
from typing import Annotated, Iterable, List

from pydantic import AfterValidator, BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from taskhub.utils.dates import to_naive_utc


def _serialize_utc(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


# Outgoing timestamps are rendered as ISO-8601 UTC with a trailing Z
UTCDateTime = Annotated[datetime, PlainSerializer(_serialize_utc, return_type=str, when_used="json")]

# Incoming timestamps are normalised to naive UTC before they reach the models
InputDateTime = Annotated[datetime, AfterValidator(to_naive_utc)]


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


def clean_tags(tags: Iterable[str], max_length: int = 20) -> List[str]:
    """Strip tags, drop blanks and duplicates, enforce the per-tag length"""
    cleaned = []
    for tag in tags:
        tag = tag.strip()
        if not tag:
            continue
        if len(tag) > max_length:
            raise ValueError(f"Tag cannot exceed {max_length} characters")
        if tag not in cleaned:
            cleaned.append(tag)
    return cleaned


def reject_nulls(model: BaseModel, fields: Iterable[str]) -> None:
    """Partial updates may omit these fields but may not null them"""
    for field in fields:
        if field in model.model_fields_set and getattr(model, field) is None:
            raise ValueError(f"{field} cannot be null")
