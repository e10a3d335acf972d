"""Export tests: zip archive of ready mockups and single filtered PNG."""

import io
import re
import zipfile

import pytest
from PIL import Image

from conftest import make_png, png_data_uri
from merchmagic.models.mockup import Mockup, MockupStatus
from merchmagic.models.presets import DEFAULT_FILTER, get_filter
from merchmagic.services.exceptions import ExportError, NoImageToExportError
from merchmagic.services.export import (
    archive_entry_name,
    build_archive,
    export_single,
    render_png,
    slugify_product,
)
from merchmagic.services.image_generation.data_uri import to_data_uri


def mockup(mockup_id, product_type, status=MockupStatus.READY, image_url=None):
    return Mockup(
        id=mockup_id,
        product_type=product_type,
        original_instruction="Render the logo.",
        status=status,
        image_url=png_data_uri() if image_url is None else image_url,
    )


def decode_png(content: bytes) -> Image.Image:
    return Image.open(io.BytesIO(content)).convert("RGBA")


def test_slugify_product():
    assert slugify_product("Coffee Mug") == "coffee-mug"
    assert slugify_product("T-Shirt  (White)") == "t-shirt-(white)"


def test_archive_entry_name_uses_last_four_id_characters():
    assert archive_entry_name(mockup("m-3-0123456789ab", "Tote Bag")) == "tote-bag-89ab.png"


class TestBuildArchive:
    def test_only_ready_mockups_are_included(self):
        mug_png = make_png((1, 2, 3, 255))
        mockups = [
            mockup("m-0-aaaaaaaa1111", "Coffee Mug", image_url=to_data_uri(mug_png)),
            mockup("m-1-bbbbbbbb2222", "Cap", status=MockupStatus.ERROR, image_url=""),
            mockup("m-2-cccccccc3333", "Hoodie", status=MockupStatus.GENERATING, image_url=""),
            mockup("m-3-dddddddd4444", "Phone Case"),
        ]

        export = build_archive(mockups, prefix="acme")

        assert re.fullmatch(r"acme-suite-\d+\.zip", export.filename)
        assert export.media_type == "application/zip"
        with zipfile.ZipFile(io.BytesIO(export.content)) as zf:
            assert zf.namelist() == ["coffee-mug-1111.png", "phone-case-4444.png"]
            assert zf.read("coffee-mug-1111.png") == mug_png

    def test_nothing_ready_returns_none(self):
        mockups = [mockup("m-0-aaaaaaaa1111", "Cap", status=MockupStatus.ERROR, image_url="")]

        assert build_archive(mockups) is None
        assert build_archive([]) is None

    def test_bad_payload_raises_export_error(self):
        mockups = [mockup("m-0-aaaaaaaa1111", "Cap", image_url="data:image/png;base64,%%%")]

        with pytest.raises(ExportError, match="Failed to generate zip file"):
            build_archive(mockups)


class TestSingleExport:
    def test_unfiltered_export_keeps_pixels(self):
        source = png_data_uri((200, 100, 50, 255))

        content = render_png(source, DEFAULT_FILTER, flipped=False)

        assert decode_png(content).getpixel((0, 0)) == (200, 100, 50, 255)

    def test_flip_mirrors_horizontally(self):
        image = Image.new("RGBA", (2, 1))
        image.putpixel((0, 0), (255, 0, 0, 255))
        image.putpixel((1, 0), (0, 0, 255, 255))
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")

        content = render_png(to_data_uri(buffer.getvalue()), DEFAULT_FILTER, flipped=True)

        flipped = decode_png(content)
        assert flipped.getpixel((0, 0)) == (0, 0, 255, 255)
        assert flipped.getpixel((1, 0)) == (255, 0, 0, 255)

    def test_grayscale_filter(self):
        content = render_png(png_data_uri((255, 0, 0, 255)), get_filter("Grayscale"), False)

        r, g, b, a = decode_png(content).getpixel((0, 0))
        assert r == g == b
        assert abs(r - 54) <= 1
        assert a == 255

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Sepia", (192, 171, 133)),
            ("Vintage", (151, 182, 202)),
            ("Warm", (105, 165, 221)),
            ("Cool", (129, 161, 213)),
        ],
    )
    def test_filter_chain_matches_css(self, name, expected):
        """Reference pixels from the CSS filter definitions applied to (100, 150, 200)."""
        content = render_png(png_data_uri((100, 150, 200, 255)), get_filter(name), False)

        pixel = decode_png(content).getpixel((0, 0))
        assert all(abs(actual - want) <= 2 for actual, want in zip(pixel[:3], expected))
        assert pixel[3] == 255

    def test_filter_preserves_transparency(self):
        content = render_png(png_data_uri((255, 0, 0, 0)), get_filter("Sepia"), False)

        assert decode_png(content).getpixel((0, 0))[3] == 0

    def test_export_single_filename(self):
        export = export_single(
            mockup("m-0-aaaaaaaa1111", "T-Shirt (Black)"), get_filter("Vintage"), True
        )

        assert re.fullmatch(r"merchmagic-t-shirt-\(black\)-\d+\.png", export.filename)
        assert export.media_type == "image/png"
        assert decode_png(export.content).size == (4, 4)

    def test_export_without_image(self):
        with pytest.raises(NoImageToExportError, match="has no image"):
            export_single(
                mockup("m-0-aaaaaaaa1111", "Cap", status=MockupStatus.ERROR, image_url=""),
                DEFAULT_FILTER,
                False,
            )

    def test_undecodable_image(self):
        with pytest.raises(ExportError, match="Failed to export image"):
            render_png(to_data_uri(b"not a png"), DEFAULT_FILTER, False)
