"""
Standard structure types and RoleMap resolution.
Based on ISO 32000-1 (PDF 1.7), 14.8.4.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional


class StructureRole(str, Enum):
    # Grouping elements
    DOCUMENT = "Document"
    PART = "Part"
    ART = "Art"
    SECT = "Sect"
    DIV = "Div"
    BLOCK_QUOTE = "BlockQuote"
    CAPTION = "Caption"
    TOC = "TOC"
    TOCI = "TOCI"
    INDEX = "Index"
    NON_STRUCT = "NonStruct"
    PRIVATE = "Private"

    # Headings and paragraphs
    H = "H"
    H1 = "H1"
    H2 = "H2"
    H3 = "H3"
    H4 = "H4"
    H5 = "H5"
    H6 = "H6"
    P = "P"

    # Lists
    L = "L"
    LI = "LI"
    LBL = "Lbl"
    LBODY = "LBody"

    # Tables
    TABLE = "Table"
    TR = "TR"
    TH = "TH"
    TD = "TD"
    THEAD = "THead"
    TBODY = "TBody"
    TFOOT = "TFoot"

    # Inline elements
    SPAN = "Span"
    QUOTE = "Quote"
    NOTE = "Note"
    REFERENCE = "Reference"
    BIB_ENTRY = "BibEntry"
    CODE = "Code"
    LINK = "Link"
    ANNOT = "Annot"
    RUBY = "Ruby"
    RB = "RB"
    RT = "RT"
    RP = "RP"
    WARICHU = "Warichu"
    WT = "WT"
    WP = "WP"

    # Illustration elements
    FIGURE = "Figure"
    FORMULA = "Formula"
    FORM = "Form"


STANDARD_ROLE_NAMES = frozenset(role.value for role in StructureRole)


def normalize_role_name(value: Any) -> str:
    """Strip the leading slash a PDF name carries."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        value = value.value
    return str(value).lstrip("/")


def is_standard_role(value: Any) -> bool:
    return normalize_role_name(value) in STANDARD_ROLE_NAMES


def resolve_role(value: Any, role_map: Optional[Mapping[str, Any]] = None) -> str:
    """Follow RoleMap entries until a standard type (or a dead end) is reached.

    ``role_map`` keys may be given with or without the leading slash.
    Cycles stop at the last name visited.
    """
    current = normalize_role_name(value)
    if not current or not role_map:
        return current

    normalized_map = {normalize_role_name(key): mapped for key, mapped in role_map.items()}
    visited = set()
    while current not in STANDARD_ROLE_NAMES and current not in visited:
        visited.add(current)
        mapped = normalize_role_name(normalized_map.get(current))
        if not mapped:
            break
        current = mapped
    return current


__all__ = [
    "STANDARD_ROLE_NAMES",
    "StructureRole",
    "is_standard_role",
    "normalize_role_name",
    "resolve_role",
]
