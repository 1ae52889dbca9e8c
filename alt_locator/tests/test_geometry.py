from decimal import Decimal
import math

import pytest

from alt_locator.geometry import AffineTransform, AffineTransformStack, Rect


def test_concat_scales_unit_square() -> None:
    stack = AffineTransformStack()
    stack.concat(AffineTransform(2, 0, 0, 2, 0, 0))
    assert stack.current_rect() == Rect(0, 0, 2, 2)


def test_concat_applies_new_matrix_before_current() -> None:
    # "1 0 0 1 100 200 cm" then "50 0 0 20 0 0 cm": the image is scaled,
    # then translated.
    stack = AffineTransformStack()
    stack.concat(AffineTransform(1, 0, 0, 1, 100, 200))
    stack.concat(AffineTransform(50, 0, 0, 20, 0, 0))
    assert stack.current_rect() == Rect(100, 200, 150, 220)


def test_push_and_pop_restore_previous_transform() -> None:
    stack = AffineTransformStack()
    stack.push()
    stack.concat(AffineTransform(3, 0, 0, 3, 10, 10))
    assert stack.depth == 2
    stack.pop()
    assert stack.current == AffineTransform.identity()
    assert stack.current_rect() == Rect(0, 0, 1, 1)


def test_pop_past_initial_identity_is_a_no_op() -> None:
    stack = AffineTransformStack()
    stack.concat(AffineTransform(2, 0, 0, 2, 0, 0))
    stack.pop()
    stack.pop()
    assert stack.depth == 1
    assert stack.current == AffineTransform(2, 0, 0, 2, 0, 0)


def test_rotation_yields_bounding_box_of_corners() -> None:
    stack = AffineTransformStack()
    angle = math.radians(45)
    stack.concat(AffineTransform(math.cos(angle), math.sin(angle), -math.sin(angle), math.cos(angle), 0, 0))
    rect = stack.current_rect()

    half_diagonal = math.sqrt(2) / 2
    assert rect.left == pytest.approx(-half_diagonal)
    assert rect.right == pytest.approx(half_diagonal)
    assert rect.bottom == pytest.approx(0)
    assert rect.top == pytest.approx(math.sqrt(2))


def test_flipped_image_rect_is_normalized() -> None:
    stack = AffineTransformStack()
    stack.concat(AffineTransform(100, 0, 0, -50, 10, 300))
    rect = stack.current_rect()
    assert rect == Rect(10, 250, 110, 300)
    assert rect.left <= rect.right and rect.bottom <= rect.top


def test_zero_scale_gives_zero_area_rect() -> None:
    stack = AffineTransformStack()
    stack.concat(AffineTransform(0, 0, 0, 40, 5, 5))
    rect = stack.current_rect()
    assert rect.width == 0
    assert rect.area == 0


def test_rect_from_sequence_normalizes_and_accepts_decimals() -> None:
    rect = Rect.from_sequence([Decimal("110.5"), 20, 10, Decimal("5")])
    assert rect == Rect(10, 5, 110.5, 20)


@pytest.mark.parametrize(
    "values",
    [
        [0, 0, 10],
        [0, 0, 10, 10, 5],
        [0, "a", 10, 10],
        [True, 0, 10, 10],
        [0, 0, float("nan"), 10],
        None,
        "0 0 10 10",
    ],
)
def test_rect_from_sequence_rejects_malformed_boxes(values) -> None:
    with pytest.raises(ValueError):
        Rect.from_sequence(values)
