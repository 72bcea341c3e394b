# taskhub/utils/query.py
# Helpers for list endpoint query parameters
from typing import Dict, Optional, Type

from sqlalchemy import String, column, func, or_, select

from taskhub.utils.errors import ValidationError

ALL = "all"


def parse_enum_filter(value: Optional[str], enum_cls: Type, field: str):
    """Return the enum member for a filter value; None or "all" means no filter"""
    if value is None or value == "" or value.lower() == ALL:
        return None
    for member in enum_cls:
        if member.value.lower() == value.lower():
            return member
    allowed = ", ".join(member.value for member in enum_cls)
    raise ValidationError(
        f"Invalid {field} filter",
        errors={field: f"Must be one of: all, {allowed}"},
    )


def tag_elements(tags_column, dialect_name: str):
    """One row per element of a JSON tag list, as a text column"""
    if dialect_name == "postgresql":
        return func.json_array_elements_text(tags_column, type_=String).column_valued("tag")
    # SQLite
    return func.json_each(tags_column).table_valued(column("value", String)).c.value


def search_clause(search: Optional[str], text_columns, tags_column=None, dialect_name: str = "sqlite"):
    """Case-insensitive substring match over text columns and each element of a JSON tag list"""
    if not search or not search.strip():
        return None
    term = search.strip()
    conditions = [text_column.icontains(term, autoescape=True) for text_column in text_columns]
    if tags_column is not None:
        tag = tag_elements(tags_column, dialect_name)
        conditions.append(select(tag).where(tag.icontains(term, autoescape=True)).exists())
    return or_(*conditions)


def sort_clause(sort_by: Optional[str], order: Optional[str], columns: Dict[str, object], default: str, default_order: str):
    """Translate sortBy/order into an ORDER BY expression from a whitelist"""
    key = sort_by or default
    column = columns.get(key)
    if column is None:
        raise ValidationError(
            f"Cannot sort by {key}",
            errors={"sortBy": f"Must be one of: {', '.join(sorted(columns))}"},
        )

    direction = (order or default_order).lower()
    if direction not in ("asc", "desc"):
        raise ValidationError("Invalid sort order", errors={"order": "Must be asc or desc"})
    return column.desc() if direction == "desc" else column.asc()


def parse_flag(value: Optional[str]) -> bool:
    return value is not None and value.lower() in ("true", "1", "yes")
