"""
Build small tagged PDFs in memory for page-handle tests.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

import pikepdf
from pikepdf import Name


def make_image(pdf: pikepdf.Pdf) -> pikepdf.Stream:
    image = pikepdf.Stream(pdf, b"\x00")
    image.Type = Name("/XObject")
    image.Subtype = Name("/Image")
    image.Width = 1
    image.Height = 1
    image.ColorSpace = Name("/DeviceGray")
    image.BitsPerComponent = 8
    return pdf.make_indirect(image)


def make_form(pdf: pikepdf.Pdf, content: str, resources: pikepdf.Dictionary, matrix=None) -> pikepdf.Stream:
    form = pikepdf.Stream(pdf, content.encode("latin-1"))
    form.Type = Name("/XObject")
    form.Subtype = Name("/Form")
    form.BBox = pikepdf.Array([0, 0, 1, 1])
    form.Resources = resources
    if matrix is not None:
        form.Matrix = pikepdf.Array(matrix)
    return pdf.make_indirect(form)


def add_page(
    pdf: pikepdf.Pdf,
    content_lines: Iterable[str],
    xobjects: Optional[Dict[str, pikepdf.Object]] = None,
    properties: Optional[Dict[str, pikepdf.Object]] = None,
) -> pikepdf.Page:
    resources = pikepdf.Dictionary(XObject=pikepdf.Dictionary(**(xobjects or {})))
    if properties:
        resources.Properties = pikepdf.Dictionary(**properties)

    page_dict = pikepdf.Dictionary(
        Type=Name("/Page"),
        MediaBox=pikepdf.Array([0, 0, 612, 792]),
        Resources=resources,
    )
    pdf.pages.append(pikepdf.Page(page_dict))
    page = pdf.pages[-1]
    page.obj.Contents = pdf.make_indirect(pikepdf.Stream(pdf, "\n".join(content_lines).encode("latin-1")))
    return page


def struct_elem(pdf: pikepdf.Pdf, role: str, kids, page: Optional[pikepdf.Page] = None, **extra) -> pikepdf.Dictionary:
    element = pikepdf.Dictionary(Type=Name("/StructElem"), S=Name("/" + role), K=kids, **extra)
    if page is not None:
        element.Pg = page.obj
    return pdf.make_indirect(element)


def mcr(page: pikepdf.Page, mcid: int) -> pikepdf.Dictionary:
    return pikepdf.Dictionary(Type=Name("/MCR"), Pg=page.obj, MCID=mcid)


def set_struct_tree(pdf: pikepdf.Pdf, kids, role_map: Optional[Dict[str, str]] = None) -> pikepdf.Dictionary:
    root = pikepdf.Dictionary(Type=Name("/StructTreeRoot"), K=pikepdf.Array(kids))
    if role_map:
        root.RoleMap = pikepdf.Dictionary(**{key: Name("/" + value) for key, value in role_map.items()})
    pdf.Root.StructTreeRoot = pdf.make_indirect(root)
    pdf.Root.MarkInfo = pikepdf.Dictionary(Marked=True)
    return pdf.Root.StructTreeRoot
