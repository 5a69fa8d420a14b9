"""
Query normalization and the entry matching predicate.

Shared by the registry's one-off search and the incremental search engine.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, List, Sequence, Tuple

from colorit.services.colors import normalize_hex

if TYPE_CHECKING:
    from colorit.services.catalog.models import NamedColor


@dataclass(frozen=True)
class SearchQuery:
    """A raw query reduced to its lowercase text form and normalized-hex form."""
    raw: str
    text: str
    hex: str

    @classmethod
    def parse(cls, raw: str) -> "SearchQuery":
        trimmed = (raw or "").strip()
        return cls(raw=raw or "", text=trimmed.lower(), hex=normalize_hex(trimmed))

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.hex

    def extends(self, previous: "SearchQuery") -> bool:
        """
        True when every entry matching self also matches *previous*, so the
        previous result set can be narrowed instead of rescanning.

        A form may grow by appended characters; a form that was empty before
        may not become non-empty, since an empty form never matched anything.
        """
        if previous.is_empty:
            return True
        extends_text = _extends(self.text, previous.text)
        extends_hex = _extends(self.hex, previous.hex)
        if not (extends_text or extends_hex):
            return False
        if self.text and not previous.text:
            return False
        if self.hex and not previous.hex:
            return False
        return _contains_or_empty(self.text, previous.text) and _contains_or_empty(self.hex, previous.hex)

    def matches(self, entry: "NamedColor") -> bool:
        return entry_matches(entry, self.text, self.hex)


def _extends(new: str, old: str) -> bool:
    return new.startswith(old) and len(new) >= len(old)


def _contains_or_empty(new: str, old: str) -> bool:
    return not new or old in new


def entry_matches(entry: "NamedColor", text: str, hex_form: str) -> bool:
    """
    Name, brand or code contains *text*, or the entry's normalized hex
    contains *hex_form*. Empty forms never match.
    """
    if text and text in entry.name.lower():
        return True
    if hex_form and hex_form in normalize_hex(entry.hex):
        return True
    vendor = entry.vendor
    if vendor is not None and text:
        if vendor.brand is not None and text in vendor.brand.lower():
            return True
        if vendor.code is not None and text in vendor.code.lower():
            return True
    return False


def filter_entries(entries: Iterable["NamedColor"], query: SearchQuery) -> List["NamedColor"]:
    if query.is_empty:
        return list(entries)
    return [entry for entry in entries if query.matches(entry)]


class SortMode(str, Enum):
    NAME = "name"
    LUMINANCE = "luminance"


def _name_key(entry: "NamedColor") -> Tuple[str, str, str, str]:
    vendor = entry.vendor
    brand = (vendor.brand if vendor is not None else None) or ""
    code = (vendor.code if vendor is not None else None) or ""
    return (entry.name, brand, code, normalize_hex(entry.hex))


def luminance(entry: "NamedColor") -> float:
    """Rec. 709 luma of the entry's color; 0 when it has none."""
    color = entry.color()
    if color is None:
        return 0.0
    return 0.2126 * color.r + 0.7152 * color.g + 0.0722 * color.b


def sort_by_name(entries: Sequence["NamedColor"], ascending: bool = True) -> List["NamedColor"]:
    """Name order; brand, code and hex break ties between equal names."""
    return sorted(entries, key=_name_key, reverse=not ascending)


def sort_by_luminance(entries: Sequence["NamedColor"], ascending: bool = True) -> List["NamedColor"]:
    """Dark to light (or light to dark); name order among equal brightness."""
    ordered = sort_by_name(entries, ascending)
    return sorted(ordered, key=luminance, reverse=not ascending)


def sort_entries(entries: Sequence["NamedColor"], ascending: bool = True,
                 mode: SortMode = SortMode.NAME) -> List["NamedColor"]:
    if SortMode(mode) is SortMode.LUMINANCE:
        return sort_by_luminance(entries, ascending)
    return sort_by_name(entries, ascending)
