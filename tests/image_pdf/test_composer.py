"""
Tests for image_pdf/pdf_assembly/composer.py - one page per image.
"""

from unittest.mock import MagicMock, patch

import fitz
import pytest

from image_pdf.errors import ImagePlacementFailure, UnknownPageFormat
from image_pdf.layout.types import FillMode
from image_pdf.pdf_assembly.composer import color_to_rgb, place_image, probe_dimensions


class TestColorToRgb:
    """Tests for color_to_rgb."""

    def test_hex_white(self):
        assert color_to_rgb("#FFFFFF") == (1.0, 1.0, 1.0)

    def test_named_color(self):
        assert color_to_rgb("black") == (0.0, 0.0, 0.0)

    def test_short_hex(self):
        assert color_to_rgb("#f00") == (1.0, 0.0, 0.0)


class TestProbeDimensions:
    """Tests for the probe fallback."""

    def test_real_dimensions(self, make_image):
        assert probe_dimensions(make_image("a.png", size=(30, 60))) == (30, 60)

    def test_fallback_on_failure(self, corrupt_image):
        with patch("image_pdf.pdf_assembly.composer.logger") as mock_logger:
            assert probe_dimensions(corrupt_image.source_path) == (800, 600)
            mock_logger.warning.assert_called_once()


class TestPlaceImageCalls:
    """Instruction sequence sent to the document."""

    def test_page_background_then_image(self, make_descriptor, settings):
        image = make_descriptor("1.png", size=(3264, 2448))
        document = MagicMock()
        page = document.new_page.return_value
        calls = []
        page.draw_rect.side_effect = lambda *a, **k: calls.append("background")
        page.insert_image.side_effect = lambda *a, **k: calls.append("image")

        layout = place_image(image, "A4", settings, document)

        document.new_page.assert_called_once_with(width=595.28, height=841.89)
        assert calls == ["background", "image"]

        background_rect = page.draw_rect.call_args[0][0]
        assert background_rect == fitz.Rect(0, 0, 595.28, 841.89)
        assert page.draw_rect.call_args.kwargs["fill"] == (1.0, 1.0, 1.0)

        image_rect = page.insert_image.call_args[0][0]
        assert image_rect.x0 == pytest.approx(layout.x)
        assert image_rect.y0 == pytest.approx(layout.y)
        assert image_rect.width == pytest.approx(layout.width)
        assert image_rect.height == pytest.approx(layout.height)
        assert page.insert_image.call_args.kwargs["filename"] == image.working_path
        assert page.insert_image.call_args.kwargs["keep_proportion"] is False

    def test_uses_configured_background(self, make_descriptor, settings):
        image = make_descriptor("1.png")
        document = MagicMock()
        custom = settings.model_copy(update={"background_color": "#000000"})

        place_image(image, "A4", custom, document)

        page = document.new_page.return_value
        assert page.draw_rect.call_args.kwargs["fill"] == (0.0, 0.0, 0.0)

    def test_probe_failure_uses_fallback_layout(self, corrupt_image, settings):
        document = MagicMock()

        layout = place_image(corrupt_image, "A4", settings, document)

        # 800x600 fitted to A4 width
        assert layout.width == pytest.approx(595.28)
        assert layout.height == pytest.approx(595.28 * 600 / 800)

    def test_placement_failure_keeps_page(self, make_descriptor, settings):
        image = make_descriptor("1.png")
        document = MagicMock()
        document.new_page.return_value.insert_image.side_effect = RuntimeError("bad image")

        with pytest.raises(ImagePlacementFailure, match="bad image"):
            place_image(image, "A4", settings, document)

        document.new_page.assert_called_once()
        document.new_page.return_value.draw_rect.assert_called_once()

    def test_unknown_page_format_adds_no_page(self, make_descriptor, settings):
        image = make_descriptor("1.png")
        document = MagicMock()

        with pytest.raises(UnknownPageFormat):
            place_image(image, "B5", settings, document)

        document.new_page.assert_not_called()

    def test_filename_label(self, make_descriptor, settings):
        image = make_descriptor("7.png")
        document = MagicMock()
        labelled = settings.model_copy(update={"show_filename": True})

        place_image(image, "A4", labelled, document)

        page = document.new_page.return_value
        page.insert_text.assert_called_once()
        assert page.insert_text.call_args[0][1] == "7.png"

    def test_no_label_by_default(self, make_descriptor, settings):
        document = MagicMock()

        place_image(make_descriptor("7.png"), "A4", settings, document)

        document.new_page.return_value.insert_text.assert_not_called()


class TestPlaceImageWithPyMuPDF:
    """End-to-end against a real PyMuPDF document."""

    def test_page_contains_image(self, make_descriptor, settings):
        image = make_descriptor("1.png", size=(120, 90))
        document = fitz.open()
        try:
            place_image(image, "Letter", settings, document)

            assert document.page_count == 1
            page = document[0]
            assert page.rect.width == pytest.approx(612)
            assert page.rect.height == pytest.approx(792)
            assert len(page.get_images()) == 1
        finally:
            document.close()

    def test_crop_overflow_is_accepted(self, make_descriptor, settings):
        image = make_descriptor("wide.png", size=(800, 600))
        crop = settings.model_copy(update={"fill_mode": FillMode.CROP})
        document = fitz.open()
        try:
            layout = place_image(image, "A4", crop, document)

            assert layout.x < 0
            assert len(document[0].get_images()) == 1
        finally:
            document.close()

    def test_corrupt_image_leaves_blank_page(self, corrupt_image, settings):
        document = fitz.open()
        try:
            with pytest.raises(ImagePlacementFailure):
                place_image(corrupt_image, "A4", settings, document)

            assert document.page_count == 1
            assert document[0].get_images() == []
        finally:
            document.close()
