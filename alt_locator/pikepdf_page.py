"""
Page handles backed by pikepdf.

``PikepdfPage`` exposes the two reads the resolver needs: a page-scoped
structure tree built from ``/StructTreeRoot`` and the page's content stream
translated into the operator vocabulary of :mod:`alt_locator.operators`.
Form XObjects are expanded in place so images drawn inside them are seen
with the correct transform.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple, Union

import pikepdf

from alt_locator.geometry import AffineTransform
from alt_locator.operators import (
    BeginMarkedContent,
    BeginMarkedContentProps,
    ConcatMatrix,
    EndMarkedContent,
    PaintImage,
    PaintOperator,
    RestoreState,
    SaveState,
)
from alt_locator.result_cache import ResultCache
from alt_locator.resolver import get_default_cache, get_page_images
from alt_locator.results import FallbackMode, ImageAltResult
from alt_locator.structure_roles import resolve_role
from alt_locator.structure_tree import StructureNode
from alt_locator.utils.pdf_objects import (
    build_properties_lookup,
    dictionary_get,
    iter_array_items,
    lookup_named_resource,
    marked_content_properties,
    name_value,
    normalize_operator_name,
    number_list,
    number_value,
    object_key,
    resolve_pdf_object,
    text_value,
)

logger = logging.getLogger(__name__)

MAX_FORM_DEPTH = 32
INLINE_IMAGE_OPERATORS = {"INLINE IMAGE", "BI"}
READ_ERRORS = (pikepdf.PdfError, KeyError, TypeError, ValueError, AttributeError)


def _is_structure_element(value: Any) -> bool:
    return isinstance(value, pikepdf.Dictionary) and "/S" in value


def _element_alt_text(element: pikepdf.Dictionary) -> Optional[str]:
    for attr in ("/Alt", "/ActualText"):
        text = text_value(dictionary_get(element, attr))
        if text:
            return text
    return None


def _element_bounding_box(element: pikepdf.Dictionary) -> Optional[List[Any]]:
    """Return ``/BBox`` from the element's attribute object(s), if any."""
    attributes = dictionary_get(element, "/A")
    candidates = [attributes] if isinstance(attributes, pikepdf.Dictionary) else list(iter_array_items(attributes))
    for candidate in candidates:
        candidate = resolve_pdf_object(candidate)
        if not isinstance(candidate, pikepdf.Dictionary):
            continue
        bbox = dictionary_get(candidate, "/BBox")
        if bbox is not None:
            return number_list(bbox)
    return None


def _read_role_map(struct_tree_root: Any) -> Dict[str, str]:
    role_map = dictionary_get(struct_tree_root, "/RoleMap")
    if not isinstance(role_map, pikepdf.Dictionary):
        return {}
    return {name_value(key): name_value(value) for key, value in role_map.items()}


class _StructureBuilder:
    """Builds the StructureNode tree for one page."""

    def __init__(self, page_key: Optional[str], accept_unpaged: bool, role_map: Mapping[str, str]):
        self.page_key = page_key
        self.accept_unpaged = accept_unpaged
        self.role_map = role_map

    def _on_page(self, page_ref: Any) -> bool:
        key = object_key(page_ref) if page_ref is not None else None
        if key is None:
            return self.accept_unpaged
        return key == self.page_key

    def _content_mcid(self, item: Any, inherited_page: Any) -> Optional[int]:
        """MCID for an integer /K entry or an /MCR dictionary on this page."""
        if isinstance(item, int) and not isinstance(item, bool):
            return item if self._on_page(inherited_page) else None
        if not isinstance(item, pikepdf.Dictionary) or "/MCID" not in item:
            return None
        mcid = number_value(dictionary_get(item, "/MCID"))
        if not isinstance(mcid, int) or isinstance(mcid, bool):
            return None
        page_ref = dictionary_get(item, "/Pg")
        return mcid if self._on_page(page_ref if page_ref is not None else inherited_page) else None

    def _is_object_reference(self, item: Any, inherited_page: Any) -> bool:
        """True for an /OBJR entry that belongs to this page."""
        if not isinstance(item, pikepdf.Dictionary) or name_value(dictionary_get(item, "/Type")) != "OBJR":
            return False
        page_ref = dictionary_get(item, "/Pg")
        return self._on_page(page_ref if page_ref is not None else inherited_page)

    def build(self, struct_tree_root: Any) -> StructureNode:
        root = StructureNode(role="Root")
        order: List[Tuple[StructureNode, Optional[StructureNode]]] = []
        has_content: Set[int] = set()
        visited: Set[str] = set()

        stack: List[Tuple[Any, StructureNode, Any]] = [(dictionary_get(struct_tree_root, "/K"), root, None)]
        while stack:
            kids, parent, inherited_page = stack.pop()
            items = iter_array_items(kids) if isinstance(kids, (list, pikepdf.Array)) else [kids]

            pending: List[Tuple[Any, StructureNode, Any]] = []
            for raw in items:
                item = resolve_pdf_object(raw)
                if item is None:
                    continue

                mcid = self._content_mcid(item, inherited_page)
                if mcid is not None:
                    parent.children.append(mcid)
                    has_content.add(id(parent))
                    continue

                if self._is_object_reference(item, inherited_page):
                    has_content.add(id(parent))
                    continue

                if not _is_structure_element(item):
                    continue

                key = object_key(item)
                if key is not None:
                    if key in visited:
                        continue
                    visited.add(key)

                try:
                    node = StructureNode(
                        role=resolve_role(dictionary_get(item, "/S"), self.role_map),
                        bounding_box=_element_bounding_box(item),
                        alt_text=_element_alt_text(item),
                    )
                except READ_ERRORS as exc:
                    logger.debug("[PikepdfPage] Skipping unreadable structure element: %s", exc)
                    continue

                parent.children.append(node)
                order.append((node, parent))
                page_ref = dictionary_get(item, "/Pg")
                pending.append(
                    (dictionary_get(item, "/K"), node, page_ref if page_ref is not None else inherited_page)
                )

            stack.extend(reversed(pending))

        # Children are always recorded after their parent, so a reverse pass
        # sees every descendant before its ancestor.
        for node, parent in reversed(order):
            if id(node) in has_content and parent is not None:
                has_content.add(id(parent))

        for node, _parent in [(root, None)] + order:
            node.children = [
                child
                for child in node.children
                if not isinstance(child, StructureNode) or id(child) in has_content
            ]
        return root


def _isolate_form_operators(inner: List[PaintOperator]) -> List[PaintOperator]:
    """Keep a form's q/Q and marked content balanced within the form.

    A Q or EMC with no opener inside the form is dropped; anything the form
    leaves open is closed at its end.
    """
    balanced: List[PaintOperator] = []
    saves = 0
    scopes = 0
    for operator in inner:
        if isinstance(operator, SaveState):
            saves += 1
        elif isinstance(operator, RestoreState):
            if saves == 0:
                logger.debug("[PikepdfPage] Dropping unmatched Q inside form")
                continue
            saves -= 1
        elif isinstance(operator, (BeginMarkedContent, BeginMarkedContentProps)):
            scopes += 1
        elif isinstance(operator, EndMarkedContent):
            if scopes == 0:
                logger.debug("[PikepdfPage] Dropping unmatched EMC inside form")
                continue
            scopes -= 1
        balanced.append(operator)

    balanced.extend(EndMarkedContent() for _ in range(scopes))
    balanced.extend(RestoreState() for _ in range(saves))
    return balanced


class _OperatorTranslator:
    """Translates pikepdf content stream instructions into paint operators."""

    def __init__(self) -> None:
        self.active_forms: Set[str] = set()

    def translate(
        self,
        container: Any,
        resources: Any,
        inherited_properties: Optional[Mapping[str, Any]] = None,
        depth: int = 0,
    ) -> List[PaintOperator]:
        properties_lookup: Dict[str, Any] = dict(inherited_properties or {})
        properties_lookup.update(build_properties_lookup(resources))

        try:
            instructions = pikepdf.parse_content_stream(container)
        except READ_ERRORS as exc:
            logger.warning("[PikepdfPage] Could not parse content stream: %s", exc)
            return []

        operators: List[PaintOperator] = []
        for instruction in instructions:
            operands = list(getattr(instruction, "operands", None) or [])
            op_name = normalize_operator_name(getattr(instruction, "operator", None))

            if op_name == "q":
                operators.append(SaveState())
            elif op_name == "Q":
                operators.append(RestoreState())
            elif op_name == "cm":
                try:
                    operators.append(ConcatMatrix(AffineTransform.from_values([number_value(v) for v in operands])))
                except (TypeError, ValueError):
                    logger.debug("[PikepdfPage] Ignoring malformed cm operands: %r", list(operands))
            elif op_name == "BMC":
                operators.append(BeginMarkedContent(tag=name_value(operands[0]) if operands else ""))
            elif op_name == "BDC":
                tag = name_value(operands[0]) if len(operands) > 0 else ""
                props = marked_content_properties(operands[1], properties_lookup) if len(operands) > 1 else None
                operators.append(BeginMarkedContentProps(tag=tag, properties=props))
            elif op_name == "EMC":
                operators.append(EndMarkedContent())
            elif op_name in INLINE_IMAGE_OPERATORS:
                operators.append(PaintImage(inline=True))
            elif op_name == "Do" and operands:
                operators.extend(
                    self._translate_xobject(operands[0], resources, properties_lookup, depth)
                )

        return operators

    def _translate_xobject(
        self,
        name: Any,
        resources: Any,
        properties_lookup: Mapping[str, Any],
        depth: int,
    ) -> List[PaintOperator]:
        xobject = lookup_named_resource(resources, "/XObject", name)
        if xobject is None:
            return []

        subtype = name_value(dictionary_get(xobject, "/Subtype"))
        if subtype == "Image":
            return [PaintImage(name=name_value(name))]
        if subtype != "Form":
            return []

        key = object_key(xobject) or f"direct:{id(xobject)}"
        if key in self.active_forms or depth >= MAX_FORM_DEPTH:
            logger.debug("[PikepdfPage] Not expanding form %s (recursive or too deep)", name_value(name))
            return []

        matrix = AffineTransform.identity()
        raw_matrix = dictionary_get(xobject, "/Matrix")
        if raw_matrix is not None:
            try:
                matrix = AffineTransform.from_values(number_list(raw_matrix))
            except (TypeError, ValueError):
                logger.debug("[PikepdfPage] Ignoring malformed form /Matrix on %s", name_value(name))

        form_resources = dictionary_get(xobject, "/Resources")
        if form_resources is None:
            form_resources = resources

        self.active_forms.add(key)
        try:
            inner = self.translate(xobject, form_resources, properties_lookup, depth + 1)
        finally:
            self.active_forms.discard(key)

        return [SaveState(), ConcatMatrix(matrix), *_isolate_form_operators(inner), RestoreState()]


class PikepdfPage:
    """Page handle for one page of a :class:`PikepdfDocument`."""

    def __init__(self, document: "PikepdfDocument", index: int):
        self.document = document
        self.index = index

    def __repr__(self) -> str:
        return f"PikepdfPage(index={self.index})"

    def _page(self) -> pikepdf.Page:
        return self.document.pdf.pages[self.index]

    def read_structure_tree(self) -> Optional[StructureNode]:
        with self.document.lock:
            pdf = self.document.pdf
            struct_tree_root = dictionary_get(pdf.Root, "/StructTreeRoot")
            if not isinstance(struct_tree_root, pikepdf.Dictionary):
                return None

            builder = _StructureBuilder(
                page_key=object_key(self._page().obj),
                accept_unpaged=len(pdf.pages) == 1,
                role_map=_read_role_map(struct_tree_root),
            )
            return builder.build(struct_tree_root)

    def read_operator_sequence(self) -> List[PaintOperator]:
        with self.document.lock:
            page = self._page()
            resources = dictionary_get(page.obj, "/Resources")
            return _OperatorTranslator().translate(page, resources)

    async def get_structure_tree(self) -> Optional[StructureNode]:
        return await asyncio.to_thread(self.read_structure_tree)

    async def get_operator_sequence(self) -> List[PaintOperator]:
        return await asyncio.to_thread(self.read_operator_sequence)


class PikepdfDocument:
    """Owns page handles for an open ``pikepdf.Pdf``.

    The same ``PikepdfPage`` is returned for a page index while the document
    is open, so cached results are reused across queries.  ``close`` drops
    the handles and their cached results.
    """

    def __init__(self, pdf: pikepdf.Pdf, *, owns_pdf: bool = False, cache: Optional[ResultCache] = None):
        self.pdf = pdf
        self.owns_pdf = owns_pdf
        self.cache = cache if cache is not None else get_default_cache()
        self.lock = threading.Lock()
        self._pages: Dict[int, PikepdfPage] = {}

    @classmethod
    def open(cls, path: Union[str, Path], **kwargs: Any) -> "PikepdfDocument":
        return cls(pikepdf.open(path), owns_pdf=True, **kwargs)

    @property
    def page_count(self) -> int:
        return len(self.pdf.pages)

    def page(self, index: int) -> PikepdfPage:
        if index < 0 or index >= self.page_count:
            raise IndexError(f"Page index {index} out of range (document has {self.page_count} pages)")
        handle = self._pages.get(index)
        if handle is None:
            handle = PikepdfPage(self, index)
            self._pages[index] = handle
        return handle

    async def get_page_images(
        self,
        index: int,
        fallback_mode: Union[FallbackMode, str, None] = None,
    ) -> List[ImageAltResult]:
        return await get_page_images(self.page(index), fallback_mode, cache=self.cache)

    def close(self) -> None:
        for handle in self._pages.values():
            self.cache.release(handle)
        self._pages.clear()
        if self.owns_pdf:
            self.pdf.close()

    def __enter__(self) -> "PikepdfDocument":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


__all__ = ["PikepdfDocument", "PikepdfPage"]
