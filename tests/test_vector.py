from __future__ import annotations

import asyncio

from conftest import missing, ok
from pressready.color import vector
from pressready.color.vector import pypdf_inventory, validate_vector_integrity

PDFIMAGES_HEADER = (
    "page   num  type   width height color comp bpc  enc interp  object ID x-ppi y-ppi size ratio\n"
    "--------------------------------------------------------------------------------------------\n"
)
IMAGE_ROW = "   1     0 image     640   480  cmyk    4   8  jpeg   no        12  0   300   300 40.2K 3.3%\n"
PDFFONTS_HEADER = (
    "name                                 type              encoding         emb sub uni object ID\n"
    "------------------------------------ ----------------- ---------------- --- --- --- ---------\n"
)


def _handler(images: int, fonts: str = "", structure: str = "Pages: 1\n"):
    def handler(argv):
        tool = argv[0]
        if tool == "pdffonts":
            return ok(argv, PDFFONTS_HEADER + fonts)
        if tool == "pdfinfo":
            return ok(argv, "Producer: pressready\nPages: 1\n")
        if tool == "pdfimages":
            return ok(argv, PDFIMAGES_HEADER + IMAGE_ROW * images)
        if tool == "mutool":
            return ok(argv, structure)
        return missing(argv)

    return handler


def test_few_images_without_fonts_is_vector_friendly(monkeypatch, runner_factory, sample_pdf) -> None:
    monkeypatch.setattr(vector, "run_subprocess", runner_factory(_handler(images=5)))

    report = asyncio.run(validate_vector_integrity(sample_pdf))

    assert report.is_vector
    assert not report.has_text
    assert not report.has_vector_graphics
    assert report.has_embedded_images
    assert report.image_count == 5


def test_many_images_without_vector_cues_is_not_vector(monkeypatch, runner_factory, sample_pdf) -> None:
    monkeypatch.setattr(vector, "run_subprocess", runner_factory(_handler(images=12)))

    report = asyncio.run(validate_vector_integrity(sample_pdf))

    assert not report.is_vector
    assert report.image_count == 12
    assert report.details["is_vector_friendly"] is False


def test_embedded_fonts_mark_text(monkeypatch, runner_factory, sample_pdf) -> None:
    fonts = "ABCDEE+Helvetica                     TrueType          WinAnsi          yes yes no      8  0\n"
    monkeypatch.setattr(vector, "run_subprocess", runner_factory(_handler(images=0, fonts=fonts)))

    report = asyncio.run(validate_vector_integrity(sample_pdf))

    assert report.has_text
    assert report.font_count == 1
    assert report.is_vector


def test_full_page_form_xobject_is_not_vector_content(monkeypatch, runner_factory, sample_pdf) -> None:
    structure = "Pages: 1\nForm XObjects (1):\n  1 (8 0 R): Form\nFonts (1): text\n"
    monkeypatch.setattr(vector, "run_subprocess", runner_factory(_handler(images=0, structure=structure)))

    report = asyncio.run(validate_vector_integrity(sample_pdf))

    assert not report.has_vector_graphics
    assert not report.is_vector


def test_mutool_path_cues_mark_vector_graphics(monkeypatch, runner_factory, sample_pdf) -> None:
    structure = "Pages: 1\nShading patterns and paths (2):\n"
    monkeypatch.setattr(vector, "run_subprocess", runner_factory(_handler(images=0, structure=structure)))

    report = asyncio.run(validate_vector_integrity(sample_pdf))

    assert report.has_vector_graphics
    assert report.is_vector


def test_large_file_is_flagged_but_not_failed(monkeypatch, runner_factory, sample_pdf) -> None:
    monkeypatch.setattr(vector, "run_subprocess", runner_factory(_handler(images=2)))
    monkeypatch.setattr(vector, "SUSPICIOUS_SIZE_KB", -1)

    report = asyncio.run(validate_vector_integrity(sample_pdf))

    assert report.is_suspiciously_large
    assert report.is_vector


def test_missing_tools_fall_back_to_pypdf(monkeypatch, runner_factory, sample_pdf) -> None:
    monkeypatch.setattr(vector, "run_subprocess", runner_factory(missing))

    report = asyncio.run(validate_vector_integrity(sample_pdf))

    assert report.details["font_source"] == "pypdf"
    assert report.details["image_source"] == "pypdf"
    assert report.details["structure_source"] == "pypdf"
    assert report.image_count == 0
    assert not report.is_vector
    assert report.file_size_kb >= 0


def test_missing_tools_without_fallback(monkeypatch, runner_factory, sample_pdf) -> None:
    monkeypatch.setattr(vector, "run_subprocess", runner_factory(missing))

    report = asyncio.run(validate_vector_integrity(sample_pdf, use_pypdf_fallback=False))

    assert not report.is_vector
    assert "font_source" not in report.details


def test_pypdf_inventory_on_blank_page(sample_pdf) -> None:
    inventory = pypdf_inventory(sample_pdf)
    assert inventory.font_count == 0
    assert inventory.image_count == 0
    assert not inventory.has_drawing_operators
