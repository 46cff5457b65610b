import numpy as np
import pytest
from PIL import Image

from quickgame.canvas import Affine, Canvas, Stroke

BLACK = (0, 0, 0, 255)
RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


@pytest.fixture
def canvas():
    return Canvas(40, 40)


def pixel(canvas, x, y):
    return canvas.frame().getpixel((x, y))


def test_new_canvas_is_black(canvas):
    assert pixel(canvas, 0, 0) == BLACK
    assert canvas.size == (40, 40)


def test_clear(canvas):
    canvas.clear("red")

    assert pixel(canvas, 0, 0) == RED
    assert pixel(canvas, 39, 39) == RED


def test_clear_ignores_transform(canvas):
    canvas.translate(100, 100)
    canvas.scale(0.1, 0.1)

    canvas.clear((255, 0, 0))

    assert pixel(canvas, 0, 0) == RED


def test_frame_is_a_copy(canvas):
    frame = canvas.frame()

    canvas.clear("red")

    assert frame.getpixel((0, 0)) == BLACK


class TestRects:
    def test_fill_rect_covers_width_by_height(self, canvas):
        canvas.fill_rect(2, 3, 4, 5, "red")

        assert pixel(canvas, 2, 3) == RED
        assert pixel(canvas, 5, 7) == RED
        assert pixel(canvas, 6, 3) == BLACK
        assert pixel(canvas, 2, 8) == BLACK

    def test_draw_rect_outlines_one_past_width(self, canvas):
        canvas.draw_rect(2, 2, 10, 10, "red")

        assert pixel(canvas, 2, 2) == RED
        assert pixel(canvas, 12, 12) == RED
        assert pixel(canvas, 7, 7) == BLACK

    @pytest.mark.parametrize("size", ((0, 5), (5, 0), (-3, 5)))
    def test_empty_fill_draws_nothing(self, canvas, size):
        canvas.fill_rect(5, 5, *size, "red")

        assert canvas.image.convert("RGB").getbbox() is None

    def test_translucent_color_blends(self, canvas):
        canvas.fill_rect(0, 0, 10, 10, (255, 0, 0, 128))

        r, g, b, a = pixel(canvas, 5, 5)
        assert 120 < r < 136
        assert (g, b, a) == (0, 0, 255)

    def test_translucent_color_blends_over_previous_drawing(self, canvas):
        canvas.fill_rect(0, 0, 10, 10, "blue")

        canvas.fill_rect(0, 0, 10, 10, (255, 0, 0, 128))

        r, g, b, a = pixel(canvas, 5, 5)
        assert 120 < r < 136 and 120 < b < 136
        assert a == 255

    def test_translucent_clear_keeps_some_of_the_old_frame(self, canvas):
        canvas.clear("white")

        canvas.clear((0, 0, 0, 64))

        r, g, b, a = pixel(canvas, 0, 0)
        assert 180 < r < 200
        assert a == 255


class TestCircles:
    def test_fill_circle(self, canvas):
        canvas.fill_circle(10, 10, 20, 20, "red")

        assert pixel(canvas, 20, 20) == RED
        assert pixel(canvas, 10, 10) == BLACK

    def test_draw_circle_is_hollow(self, canvas):
        canvas.draw_circle(10, 10, 20, 20, "red")

        assert pixel(canvas, 20, 20) == BLACK
        assert pixel(canvas, 20, 10) == RED

    def test_rotated_oval(self, canvas):
        canvas.translate(20, 20)
        canvas.rotate(90)

        # 20 wide, 4 tall before rotating
        canvas.fill_circle(-10, -2, 20, 4, "red")

        assert pixel(canvas, 20, 28) == RED
        assert pixel(canvas, 28, 20) == BLACK


class TestLinesAndPolygons:
    def test_draw_line(self, canvas):
        canvas.draw_line(0, 10, 30, 10, "red")

        assert all(pixel(canvas, x, 10) == RED for x in range(31))
        assert pixel(canvas, 15, 12) == BLACK

    def test_stroke_width(self, canvas):
        canvas.set_stroke(Stroke(3))

        canvas.draw_line(0, 10, 30, 10, "red")

        assert pixel(canvas, 15, 11) == RED
        assert pixel(canvas, 15, 9) == RED

    def test_stroke_scales_with_transform(self, canvas):
        canvas.scale(3, 3)

        canvas.draw_line(0, 5, 10, 5, "red")

        assert pixel(canvas, 15, 16) == RED
        assert pixel(canvas, 15, 14) == RED

    def test_translucent_line_blends(self, canvas):
        canvas.clear("white")

        canvas.draw_line(0, 10, 30, 10, (0, 0, 0, 128))

        r, g, b, a = pixel(canvas, 15, 10)
        assert 120 < r < 136
        assert a == 255

    def test_invalid_stroke(self, canvas):
        with pytest.raises(ValueError):
            canvas.set_stroke(Stroke(0))

    def test_fill_polygon(self, canvas):
        canvas.fill_polygon([(0, 0), (30, 0), (0, 30)], "red")

        assert pixel(canvas, 5, 5) == RED
        assert pixel(canvas, 25, 25) == BLACK

    def test_draw_polygon_closes_the_shape(self, canvas):
        canvas.draw_polygon([(0, 0), (20, 0), (20, 20)], "red")

        assert pixel(canvas, 10, 10) == RED
        assert pixel(canvas, 10, 0) == RED
        assert pixel(canvas, 20, 10) == RED

    def test_degenerate_polygons_draw_nothing(self, canvas):
        canvas.draw_polygon([(5, 5)], "red")
        canvas.fill_polygon([(5, 5), (10, 10)], "red")

        assert canvas.image.convert("RGB").getbbox() is None


class TestTransforms:
    def test_translate(self, canvas):
        canvas.translate(10, 5)

        canvas.fill_rect(0, 0, 2, 2, "red")

        assert pixel(canvas, 10, 5) == RED
        assert pixel(canvas, 0, 0) == BLACK

    def test_translations_accumulate(self, canvas):
        canvas.translate(10, 5)
        canvas.translate(1, 1)

        assert canvas.matrix[:2, 2].tolist() == [11, 6]

    def test_scale(self, canvas):
        canvas.scale(2, 2)

        canvas.fill_rect(1, 1, 2, 2, "red")

        assert pixel(canvas, 2, 2) == RED
        assert pixel(canvas, 5, 5) == RED
        assert pixel(canvas, 6, 6) == BLACK

    def test_rotate_is_clockwise_on_screen(self, canvas):
        canvas.translate(20, 20)
        canvas.rotate(90)

        canvas.fill_rect(0, 0, 10, 5, "red")

        # x axis now points down
        assert pixel(canvas, 17, 25) == RED
        assert pixel(canvas, 25, 17) == BLACK

    def test_rotate_about_a_point(self, canvas):
        canvas.rotate(180, 10, 10)

        canvas.fill_rect(0, 0, 5, 5, "red")

        assert pixel(canvas, 17, 17) == RED
        assert pixel(canvas, 2, 2) == BLACK

    def test_rotate_needs_both_origin_coordinates(self, canvas):
        with pytest.raises(ValueError):
            canvas.rotate(45, x=10)

    def test_shear(self, canvas):
        canvas.shear(0.5, 0)

        assert canvas.matrix[0, 1] == 0.5
        assert canvas.matrix[1, 0] == 0

    def test_transform_concatenates(self, canvas):
        canvas.translate(5, 0)

        canvas.transform([[2, 0, 1], [0, 2, 1]])

        expected = Affine.translate(5, 0) @ Affine.from_array(
            [[2, 0, 1], [0, 2, 1]]
        )
        assert np.allclose(canvas.matrix, expected)

    @pytest.mark.parametrize(
        "matrix", ([[1, 0], [0, 1]], [[1, 0, 0], [0, 1, 0], [1, 0, 1]])
    )
    def test_invalid_matrix(self, canvas, matrix):
        with pytest.raises(ValueError):
            canvas.transform(matrix)

    def test_save_and_restore(self, canvas):
        canvas.translate(3, 4)
        saved = canvas.matrix
        canvas.rotate(30)

        canvas.set_transform(saved)

        assert np.allclose(canvas.matrix, Affine.translate(3, 4))

    def test_matrix_is_a_copy(self, canvas):
        canvas.matrix[0, 2] = 100

        assert np.allclose(canvas.matrix, np.identity(3))

    def test_reset_transform(self, canvas):
        canvas.scale(3, 3)

        canvas.reset_transform()

        assert np.allclose(canvas.matrix, np.identity(3))


class TestImages:
    @pytest.fixture
    def red_image(self):
        return Image.new("RGBA", (4, 4), RED)

    def test_draw_image(self, canvas, red_image):
        canvas.draw_image(red_image, 2, 2)

        assert pixel(canvas, 2, 2) == RED
        assert pixel(canvas, 5, 5) == RED
        assert pixel(canvas, 6, 6) == BLACK

    def test_draw_image_stretched(self, canvas, red_image):
        canvas.draw_image(red_image, 2, 2, 8, 8)

        assert pixel(canvas, 9, 9) == RED
        assert pixel(canvas, 10, 10) == BLACK

    def test_draw_image_cropped(self, canvas):
        image = Image.new("RGBA", (4, 2), RED)
        image.paste(BLUE, (2, 0, 4, 2))

        canvas.draw_image(image, 0, 0, src=(2, 0, 2, 2))

        assert pixel(canvas, 0, 0) == BLUE
        assert pixel(canvas, 1, 1) == BLUE
        assert pixel(canvas, 2, 0) == BLACK

    def test_draw_image_cropped_and_stretched(self, canvas):
        image = Image.new("RGBA", (4, 2), RED)
        image.paste(BLUE, (2, 0, 4, 2))

        canvas.draw_image(image, 0, 0, 10, 10, src=(0, 0, 2, 2))

        assert pixel(canvas, 9, 9) == RED
        assert pixel(canvas, 10, 10) == BLACK

    def test_partially_off_canvas(self, canvas, red_image):
        canvas.draw_image(red_image, -2, -2)
        canvas.draw_image(red_image, 38, 38)

        assert pixel(canvas, 1, 1) == RED
        assert pixel(canvas, 2, 2) == BLACK
        assert pixel(canvas, 39, 39) == RED

    def test_completely_off_canvas(self, canvas, red_image):
        canvas.draw_image(red_image, 100, 100)
        canvas.draw_image(red_image, -10, 0)

        assert canvas.image.convert("RGB").getbbox() is None

    def test_transparent_pixels_keep_background(self, canvas):
        image = Image.new("RGBA", (4, 4), (0, 0, 0, 0))
        image.putpixel((0, 0), RED)

        canvas.draw_image(image, 0, 0)

        assert pixel(canvas, 0, 0) == RED
        assert pixel(canvas, 1, 1) == BLACK

    def test_draw_image_scaled(self, canvas):
        canvas.scale(2, 2)

        canvas.draw_image(Image.new("RGBA", (2, 2), RED), 1, 1)

        assert pixel(canvas, 2, 2) == RED
        assert pixel(canvas, 5, 5) == RED
        assert pixel(canvas, 6, 6) == BLACK

    @pytest.mark.parametrize("scale", (1, 2))
    def test_translucent_image_blends(self, canvas, scale):
        canvas.clear("blue")
        canvas.scale(scale, scale)

        canvas.draw_image(Image.new("RGBA", (4, 4), (255, 0, 0, 128)), 0, 0)

        r, g, b, a = pixel(canvas, 1, 1)
        assert 120 < r < 136 and 120 < b < 136
        assert a == 255

    def test_non_rgba_image(self, canvas):
        canvas.draw_image(Image.new("RGB", (2, 2), (0, 0, 255)), 0, 0)

        assert pixel(canvas, 1, 1) == BLUE

    def test_width_without_height(self, canvas, red_image):
        with pytest.raises(ValueError):
            canvas.draw_image(red_image, 0, 0, width=3)


class TestText:
    def test_text_sits_on_baseline(self, canvas):
        canvas.draw_text(5, 20, "Hi", color="white")

        left, top, right, bottom = canvas.image.convert("RGB").getbbox()
        assert left >= 4
        assert top < 20
        assert bottom <= 21

    def test_text_through_transform(self, canvas):
        canvas.translate(20, 20)
        canvas.rotate(90)

        canvas.draw_text(0, 0, "Hello", color="white")

        bbox = canvas.image.convert("RGB").getbbox()
        assert bbox is not None
        # rotated text runs downwards
        assert bbox[3] - bbox[1] > bbox[2] - bbox[0]

    def test_empty_text(self, canvas):
        canvas.draw_text(5, 20, "")

        assert canvas.image.convert("RGB").getbbox() is None
