"""
Tolerant helpers for reading pikepdf objects.

Real-world documents routinely carry indirect references where direct
objects are expected, names with or without the leading slash, and numbers
stored as ``Decimal``.  These helpers normalize all of that and return
``None``/empty values instead of raising.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, cast

import pikepdf
from pikepdf import Name


def resolve_pdf_object(value: Any) -> Any:
    """Return the underlying direct object if value is an indirect reference.
    If the value is already a direct object or cannot be dereferenced, return it unchanged.
    """
    if value is None:
        return None

    try:
        get_obj = getattr(value, "get_object", None)
        if callable(get_obj):
            return get_obj()
    except Exception:
        # Direct object or non-dereferenceable; just return as-is
        return value

    return value


def object_key(obj: Any) -> Optional[str]:
    """Produce a stable key for comparing pikepdf objects when possible."""
    if obj is None:
        return None

    resolved = getattr(obj, "obj", obj)
    resolved = resolve_pdf_object(resolved)

    ref = getattr(resolved, "objgen", None)
    if ref and tuple(ref) != (0, 0):
        try:
            return f"{int(ref[0])}:{int(ref[1])}"
        except (TypeError, ValueError, IndexError):
            return None

    return None


def iter_array_items(value: Any) -> Iterable[Any]:
    """Best-effort iterable wrapper for pikepdf.Array/list values."""
    if isinstance(value, list):
        return value
    if isinstance(value, pikepdf.Array):
        return cast(Iterable[Any], value)
    return ()


def name_value(value: Any) -> str:
    """Return a PDF name (or string) without its leading slash."""
    value = resolve_pdf_object(value)
    if value is None:
        return ""
    try:
        return str(value).lstrip("/")
    except Exception:
        return ""


def text_value(value: Any) -> Optional[str]:
    """Return a non-blank text string, or None."""
    value = resolve_pdf_object(value)
    if value is None:
        return None
    try:
        text = str(value)
    except Exception:
        return None
    return text if text.strip() else None


def number_value(value: Any) -> Any:
    """Convert pikepdf numbers to int/float; leave anything else untouched."""
    value = resolve_pdf_object(value)
    if isinstance(value, bool) or isinstance(value, (int, float)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    return value


def number_list(value: Any) -> List[Any]:
    return [number_value(item) for item in iter_array_items(resolve_pdf_object(value))]


def normalize_operator_name(operator: Any) -> str:
    """Return a comparable operator name for content stream instructions."""
    try:
        raw_name = getattr(operator, "name", None)
    except Exception:
        raw_name = None

    try:
        name = str(raw_name) if raw_name is not None else str(operator)
    except Exception:
        return ""

    if name.startswith("/"):
        name = name[1:]
    return name


def dictionary_get(container: Any, key: str) -> Any:
    """``container.get(key)`` tolerant of missing keys and odd containers."""
    container = resolve_pdf_object(container)
    if not isinstance(container, pikepdf.Dictionary) and not hasattr(container, "get"):
        return None
    try:
        return resolve_pdf_object(container.get(key))
    except (KeyError, TypeError, ValueError, pikepdf.PdfError):
        return None


def build_properties_lookup(resources: Any) -> Dict[str, Any]:
    """Return mapping of property resource names to dictionaries."""
    properties: Dict[str, Any] = {}
    props_dict = dictionary_get(resources, "/Properties")
    if isinstance(props_dict, pikepdf.Dictionary):
        for key, value in props_dict.items():
            key_str = str(key)
            properties[key_str] = value
            properties[key_str.lstrip("/")] = value
    return properties


def lookup_named_resource(resources: Any, category: str, name: Any) -> Any:
    """Resolve ``name`` inside ``resources[category]`` (e.g. ``/XObject``)."""
    entries = dictionary_get(resources, category)
    if not isinstance(entries, pikepdf.Dictionary) or name is None:
        return None

    name_str = name_value(name)
    if not name_str:
        return None

    for candidate in (Name("/" + name_str), "/" + name_str):
        try:
            if candidate in entries:
                return resolve_pdf_object(entries[candidate])
        except (KeyError, TypeError, ValueError):
            continue
    return None


def marked_content_properties(operand: Any, properties_lookup: Mapping[str, Any]) -> Any:
    """Turn a BDC property operand into an MCID int or a plain dict.

    Named operands are resolved through the page's ``/Properties``.
    """
    resolved = resolve_pdf_object(operand)
    if isinstance(resolved, Name):
        key = str(resolved)
        resolved = resolve_pdf_object(properties_lookup.get(key) or properties_lookup.get(key.lstrip("/")))

    if isinstance(resolved, int) and not isinstance(resolved, bool):
        return resolved
    if not isinstance(resolved, pikepdf.Dictionary):
        return None

    plain: Dict[str, Any] = {}
    mcid = number_value(dictionary_get(resolved, "/MCID"))
    if isinstance(mcid, int) and not isinstance(mcid, bool):
        plain["MCID"] = mcid
    type_name = name_value(dictionary_get(resolved, "/Type"))
    if type_name:
        plain["Type"] = type_name
    return plain


__all__ = [
    "build_properties_lookup",
    "dictionary_get",
    "iter_array_items",
    "lookup_named_resource",
    "marked_content_properties",
    "name_value",
    "normalize_operator_name",
    "number_list",
    "number_value",
    "object_key",
    "resolve_pdf_object",
    "text_value",
]
