from alt_locator.geometry import AffineTransform, Rect
from alt_locator.operator_scanner import OperatorScanner, parse_marked_content_properties, scan_operators
from alt_locator.operators import (
    BeginMarkedContent,
    BeginMarkedContentProps,
    ConcatMatrix,
    EndMarkedContent,
    PaintImage,
    RestoreState,
    SaveState,
)
from alt_locator.tests.utils.fake_pages import artifact_image, placed_image, tagged_image


def test_collects_rect_and_draw_order_for_each_image() -> None:
    operators = [*placed_image(10, 20, 100, 50), *placed_image(200, 20, 30, 30)]
    regions = scan_operators(operators)

    assert [region.rect for region in regions] == [Rect(10, 20, 110, 70), Rect(200, 20, 230, 50)]
    assert [region.draw_order for region in regions] == [0, 1]
    assert regions[0].id != regions[1].id
    assert not regions[0].inside_marked_content
    assert regions[0].marked_content_id is None


def test_records_innermost_marked_content_id() -> None:
    operators = [
        BeginMarkedContentProps(tag="Sect", properties={"MCID": 1}),
        BeginMarkedContent(tag="Span"),
        *placed_image(0, 0, 10, 10),
        EndMarkedContent(),
        EndMarkedContent(),
        *tagged_image(7, 0, 0, 10, 10),
    ]
    regions = scan_operators(operators)

    assert [region.marked_content_id for region in regions] == [1, 7]
    assert all(region.inside_marked_content for region in regions)


def test_images_inside_artifacts_are_skipped() -> None:
    operators = [
        *artifact_image(0, 700, 600, 80),
        BeginMarkedContentProps(tag="Artifact", properties={"Type": "Pagination"}),
        *tagged_image(3, 0, 0, 10, 10),
        EndMarkedContent(),
        BeginMarkedContentProps(tag="Figure", properties={"MCID": 5, "Type": "Artifact"}),
        *placed_image(0, 0, 10, 10),
        EndMarkedContent(),
        *tagged_image(4, 50, 50, 20, 20),
    ]
    scanner = OperatorScanner()
    regions = scanner.scan(operators)

    assert [region.marked_content_id for region in regions] == [4]
    assert regions[0].draw_order == 0
    assert scanner.skipped_artifacts == 3


def test_zero_area_images_are_still_emitted() -> None:
    regions = scan_operators([ConcatMatrix(AffineTransform(0, 0, 0, 0, 5, 5)), PaintImage()])
    assert len(regions) == 1
    assert regions[0].rect.area == 0


def test_unbalanced_restore_and_unknown_operators_are_tolerated() -> None:
    operators = [
        RestoreState(),
        "BT",
        object(),
        EndMarkedContent(),
        SaveState(),
        ConcatMatrix(AffineTransform(2, 0, 0, 2, 0, 0)),
        PaintImage(inline=True),
        RestoreState(),
        RestoreState(),
        PaintImage(),
    ]
    scanner = OperatorScanner()
    regions = scanner.scan(operators)

    assert [region.rect for region in regions] == [Rect(0, 0, 2, 2), Rect(0, 0, 1, 1)]
    assert scanner.ignored_operators == 2


def test_parse_marked_content_properties_variants() -> None:
    assert parse_marked_content_properties("Figure", 3) == (3, False)
    assert parse_marked_content_properties("/Figure", {"mcid": 8}) == (8, False)
    assert parse_marked_content_properties("/Artifact", {"Type": "Layout"}) == (None, True)
    assert parse_marked_content_properties("Span", {"MCID": -1}) == (None, False)
    assert parse_marked_content_properties("Span", True) == (None, False)
    assert parse_marked_content_properties("Span", None) == (None, False)
