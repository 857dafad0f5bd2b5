"""
Typed access to Notion page properties.

Raw property payloads are parsed into one tagged variant per property type.
Accessors narrow a named property to the variant a job expects and fail fast
when the property is absent or of another type, so a wrong column mapping is
reported at the first page that uses it.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from shared.errors import PropertyMissingError, PropertyTypeError


@dataclass(frozen=True)
class RichTextValue:
    plain_text: str
    kind = "rich_text"


@dataclass(frozen=True)
class TitleValue:
    plain_text: str
    kind = "title"


@dataclass(frozen=True)
class UrlValue:
    url: Optional[str]
    kind = "url"


@dataclass(frozen=True)
class NumberValue:
    number: Optional[float]
    kind = "number"


@dataclass(frozen=True)
class SelectValue:
    name: Optional[str]
    kind = "select"


@dataclass(frozen=True)
class MultiSelectValue:
    names: Tuple[str, ...]
    kind = "multi_select"


@dataclass(frozen=True)
class DateValue:
    start: Optional[str]
    end: Optional[str] = None
    kind = "date"


@dataclass(frozen=True)
class FormulaValue:
    result_type: str
    value: Any
    kind = "formula"


@dataclass(frozen=True)
class UnsupportedValue:
    kind: str


PropertyValue = Union[
    RichTextValue,
    TitleValue,
    UrlValue,
    NumberValue,
    SelectValue,
    MultiSelectValue,
    DateValue,
    FormulaValue,
    UnsupportedValue,
]


def plain_text(blocks: Optional[List[Dict]]) -> str:
    """Concatenate the plain text of every rich text run, dropping styling."""
    if not blocks:
        return ""
    parts: List[str] = []
    for block in blocks:
        if block.get("plain_text") is not None:
            parts.append(block["plain_text"])
        elif block.get("text"):
            parts.append(block["text"].get("content", ""))
    return "".join(parts)


def parse_property_value(raw: Dict) -> PropertyValue:
    """Turn a raw Notion property payload into its tagged variant."""
    prop_type = raw.get("type")

    if prop_type == "rich_text":
        return RichTextValue(plain_text(raw.get("rich_text")))
    if prop_type == "title":
        return TitleValue(plain_text(raw.get("title")))
    if prop_type == "url":
        return UrlValue(raw.get("url"))
    if prop_type == "number":
        return NumberValue(raw.get("number"))
    if prop_type == "select":
        option = raw.get("select")
        return SelectValue(option.get("name") if option else None)
    if prop_type == "multi_select":
        options = raw.get("multi_select") or []
        return MultiSelectValue(tuple(opt["name"] for opt in options if opt.get("name")))
    if prop_type == "date":
        date_payload = raw.get("date") or {}
        return DateValue(date_payload.get("start"), date_payload.get("end"))
    if prop_type == "formula":
        formula = raw.get("formula") or {}
        result_type = formula.get("type", "unknown")
        return FormulaValue(result_type, formula.get(result_type))

    return UnsupportedValue(prop_type or "unknown")


def get_property(page: Dict, property_name: str) -> PropertyValue:
    raw = (page.get("properties") or {}).get(property_name)
    if raw is None:
        raise PropertyMissingError(property_name, page.get("id"))
    return parse_property_value(raw)


def _expect(page: Dict, property_name: str, variant: type) -> Any:
    value = get_property(page, property_name)
    if not isinstance(value, variant):
        raise PropertyTypeError(property_name, variant.kind, value.kind, page.get("id"))
    return value


def get_rich_text(page: Dict, property_name: str) -> str:
    return _expect(page, property_name, RichTextValue).plain_text


def get_title(page: Dict, property_name: str) -> str:
    return _expect(page, property_name, TitleValue).plain_text


def get_url(page: Dict, property_name: str) -> str:
    """Return the URL of a url property, or the empty string when unset."""
    return _expect(page, property_name, UrlValue).url or ""


def get_number(page: Dict, property_name: str) -> Optional[float]:
    return _expect(page, property_name, NumberValue).number


def get_select(page: Dict, property_name: str) -> Optional[str]:
    return _expect(page, property_name, SelectValue).name


def get_multi_select(page: Dict, property_name: str) -> List[str]:
    return list(_expect(page, property_name, MultiSelectValue).names)


def get_date(page: Dict, property_name: str) -> Optional[str]:
    return _expect(page, property_name, DateValue).start


def get_formula_boolean(page: Dict, property_name: str) -> bool:
    """Read a boolean formula; a boolean formula with no result counts as False."""
    formula = _expect(page, property_name, FormulaValue)
    if formula.result_type != "boolean":
        raise PropertyTypeError(
            property_name, "boolean formula", f"{formula.result_type} formula", page.get("id")
        )
    return bool(formula.value)


def text_payload(content: str) -> Dict:
    return {"rich_text": [{"type": "text", "text": {"content": content}}]}


def title_payload(content: str) -> Dict:
    return {"title": [{"type": "text", "text": {"content": content}}]}


def url_payload(url: Optional[str]) -> Dict:
    return {"url": url or None}


def number_payload(number: Optional[float]) -> Dict:
    return {"number": number}


def select_payload(name: Optional[str]) -> Dict:
    return {"select": {"name": name} if name else None}


def multi_select_payload(names: List[str]) -> Dict:
    return {"multi_select": [{"name": name} for name in names]}


def date_payload(start: Optional[str]) -> Dict:
    return {"date": {"start": start} if start else None}


def external_file(url: str) -> Dict:
    """Cover/icon payload pointing at an external image."""
    return {"type": "external", "external": {"url": url}}
