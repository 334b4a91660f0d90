from __future__ import annotations

import asyncio
import io
from pathlib import Path

import pytest
from PIL import Image

from conftest import failed, missing, ok, write_output
from pressready.color import engine as engine_module
from pressready.color import strategies
from pressready.color.engine import ALL_METHODS_FAILED, CMYKConversionEngine, parse_exiftool_color_info
from pressready.color.models import ConversionRequest
from pressready.exceptions import InvalidInputError


def _output_of(argv: tuple[str, ...]) -> str:
    for part in argv:
        if part.startswith("-sOutputFile="):
            return part.split("=", 1)[1]
    return argv[-1]


def _writes(argv):
    write_output(_output_of(argv))
    return ok(argv)


@pytest.fixture()
def scratch_dir(tmp_path: Path) -> Path:
    return tmp_path / "scratch"


def _engine(availability, profiles, scratch_dir) -> CMYKConversionEngine:
    return CMYKConversionEngine(availability, profiles, temp_dir=scratch_dir)


@pytest.mark.parametrize("dpi", [0, None, -72, True])
def test_missing_or_invalid_dpi_raises_before_any_process(
    monkeypatch, runner_factory, availability_factory, profiles, sample_pdf, tmp_path, scratch_dir, dpi
) -> None:
    runner = runner_factory(_writes)
    monkeypatch.setattr(strategies, "run_subprocess", runner)
    engine = _engine(availability_factory("imagemagick", "ghostscript"), profiles, scratch_dir)

    with pytest.raises(InvalidInputError):
        asyncio.run(engine.convert_pdf(sample_pdf, tmp_path / "out.pdf", target_dpi=dpi))

    assert runner.calls == []


def test_missing_source_raises(availability_factory, profiles, tmp_path, scratch_dir) -> None:
    engine = _engine(availability_factory("imagemagick"), profiles, scratch_dir)
    with pytest.raises(InvalidInputError):
        asyncio.run(engine.convert_pdf(tmp_path / "missing.pdf", tmp_path / "out.pdf", target_dpi=300))


def test_first_succeeding_strategy_wins(
    monkeypatch, runner_factory, availability_factory, profiles, sample_pdf, tmp_path, scratch_dir
) -> None:
    runner = runner_factory(_writes)
    monkeypatch.setattr(strategies, "run_subprocess", runner)
    engine = _engine(availability_factory("imagemagick", "ghostscript"), profiles, scratch_dir)
    destination = tmp_path / "out" / "cmyk.pdf"

    result = asyncio.run(engine.convert_pdf(sample_pdf, destination, target_dpi=300))

    assert result.success
    assert result.method == "imagemagick-icc"
    assert result.used_icc and result.used_cmyk
    assert result.attempts == ()
    assert len(runner.calls) == 1
    assert destination.read_bytes() == b"%PDF-1.4 converted"


def test_falls_back_to_ghostscript_without_icc(
    monkeypatch, runner_factory, availability_factory, profiles, sample_pdf, tmp_path, scratch_dir
) -> None:
    def handler(argv):
        if argv[0] == "magick":
            return failed(argv, stderr="no decode delegate")
        return _writes(argv)

    runner = runner_factory(handler)
    monkeypatch.setattr(strategies, "run_subprocess", runner)
    engine = _engine(availability_factory("imagemagick", "ghostscript"), profiles, scratch_dir)

    result = asyncio.run(engine.convert_pdf(sample_pdf, tmp_path / "out.pdf", target_dpi=300))

    assert result.success
    assert result.method == "ghostscript-cmyk"
    assert result.used_icc is False
    assert [attempt.method for attempt in result.attempts] == ["imagemagick-icc", "imagemagick-basic"]
    assert runner.executables() == ["magick", "magick", "gs"]


def test_all_strategies_failing_reports_aggregate_error(
    monkeypatch, runner_factory, availability_factory, profiles, sample_pdf, tmp_path, scratch_dir
) -> None:
    monkeypatch.setattr(strategies, "run_subprocess", runner_factory(lambda argv: failed(argv)))
    engine = _engine(availability_factory("imagemagick", "ghostscript"), profiles, scratch_dir)

    result = asyncio.run(engine.convert_pdf(sample_pdf, tmp_path / "out.pdf", target_dpi=300))

    assert not result.success
    assert result.method == "none"
    assert result.error.startswith(ALL_METHODS_FAILED)
    assert "ghostscript-cmyk" in result.error
    assert not (tmp_path / "out.pdf").exists()


def test_tool_without_output_counts_as_failure(
    monkeypatch, runner_factory, availability_factory, profiles, sample_pdf, tmp_path, scratch_dir
) -> None:
    def handler(argv):
        if argv[0] == "magick":
            return ok(argv)  # exit 0, nothing written
        return _writes(argv)

    monkeypatch.setattr(strategies, "run_subprocess", runner_factory(handler))
    engine = _engine(availability_factory("imagemagick", "ghostscript"), profiles, scratch_dir)

    result = asyncio.run(engine.convert_pdf(sample_pdf, tmp_path / "out.pdf", target_dpi=300))

    assert result.method == "ghostscript-cmyk"
    assert "produced no output" in result.attempts[0].error


def test_missing_destination_profile_degrades_to_basic(
    monkeypatch, runner_factory, availability_factory, empty_profiles, sample_pdf, tmp_path, scratch_dir
) -> None:
    runner = runner_factory(_writes)
    monkeypatch.setattr(strategies, "run_subprocess", runner)
    engine = _engine(availability_factory("imagemagick"), empty_profiles, scratch_dir)

    result = asyncio.run(engine.convert_pdf(sample_pdf, tmp_path / "out.pdf", target_dpi=150))

    assert result.method == "imagemagick-basic"
    assert result.used_icc is False
    assert "-profile" not in runner.calls[0]


@pytest.mark.parametrize("succeed", [True, False])
def test_intermediate_files_are_removed(
    monkeypatch, runner_factory, availability_factory, profiles, sample_pdf, tmp_path, scratch_dir, succeed
) -> None:
    def handler(argv):
        # a failing tool may still leave a partial file behind
        write_output(_output_of(argv))
        return ok(argv) if succeed else failed(argv)

    monkeypatch.setattr(strategies, "run_subprocess", runner_factory(handler))
    engine = _engine(availability_factory("imagemagick", "ghostscript"), profiles, scratch_dir)

    result = asyncio.run(engine.convert_pdf(sample_pdf, tmp_path / "out.pdf", target_dpi=300))

    assert result.success is succeed
    leftovers = [path.name for path in scratch_dir.iterdir() if "_input_" in path.name or "_output_" in path.name]
    assert leftovers == []


def test_convert_request_directly(
    monkeypatch, runner_factory, availability_factory, profiles, sample_pdf, tmp_path, scratch_dir
) -> None:
    monkeypatch.setattr(strategies, "run_subprocess", runner_factory(_writes))
    engine = _engine(availability_factory("ghostscript"), profiles, scratch_dir)
    request = ConversionRequest(sample_pdf, tmp_path / "direct.pdf", target_dpi=600, quality=80)

    result = asyncio.run(engine.convert(request))

    assert result.method == "ghostscript-cmyk"


def test_ycck_image_uses_ycck_chain(
    monkeypatch, runner_factory, availability_factory, profiles, cmyk_jpeg, tmp_path, scratch_dir
) -> None:
    def handler(argv):
        if argv[0] == "exiftool":
            return ok(argv, "Color Transform                 : YCCK\nColor Components                : 4\n")
        return _writes(argv)

    runner = runner_factory(handler)
    monkeypatch.setattr(strategies, "run_subprocess", runner)
    monkeypatch.setattr(engine_module, "run_subprocess", runner)
    engine = _engine(availability_factory("imagemagick", "exiftool", "jpgicc"), profiles, scratch_dir)

    result = asyncio.run(engine.convert_image(cmyk_jpeg, tmp_path / "rgb.jpg"))

    assert result.success
    assert result.method == "imagemagick-ycck"
    magick_call = next(call for call in runner.calls if call[0] == "magick")
    assert magick_call[2:4] == ("-colorspace", "CMYK")
    exiftool_call = next(call for call in runner.calls if call[0] == "exiftool")
    assert "-ColorTransform" in exiftool_call


def test_plain_cmyk_image_prefers_jpgicc(
    monkeypatch, runner_factory, availability_factory, profiles, cmyk_jpeg, tmp_path, scratch_dir
) -> None:
    runner = runner_factory(_writes)
    monkeypatch.setattr(strategies, "run_subprocess", runner)
    engine = _engine(availability_factory("imagemagick", "jpgicc"), profiles, scratch_dir)

    result = asyncio.run(engine.convert_image(cmyk_jpeg, tmp_path / "rgb.jpg", ycck=False))

    assert result.method == "jpgicc-embedded"
    assert runner.calls[0][0] == "jpgicc"


def test_image_bytes_fall_back_to_pillow(availability_factory, empty_profiles, image_bytes, scratch_dir) -> None:
    engine = _engine(availability_factory(), empty_profiles, scratch_dir)

    converted, result = asyncio.run(engine.convert_image_bytes(image_bytes("CMYK")))

    assert result.success
    assert result.method == "pillow-imagecms"
    assert result.used_icc is False
    with Image.open(io.BytesIO(converted)) as image:
        assert image.mode == "RGB"
        assert image.format == "JPEG"
    assert list(scratch_dir.iterdir()) == []


def test_inspect_jpeg_color_without_exiftool_uses_pillow(availability_factory, profiles, cmyk_jpeg, scratch_dir) -> None:
    engine = _engine(availability_factory(), profiles, scratch_dir)

    info = asyncio.run(engine.inspect_jpeg_color(cmyk_jpeg))

    assert info.color_mode == "CMYK"
    assert info.color_components == "4"


def test_inspect_jpeg_color_survives_exiftool_failure(
    monkeypatch, runner_factory, availability_factory, profiles, cmyk_jpeg, scratch_dir
) -> None:
    monkeypatch.setattr(engine_module, "run_subprocess", runner_factory(missing))
    engine = _engine(availability_factory("exiftool"), profiles, scratch_dir)

    info = asyncio.run(engine.inspect_jpeg_color(cmyk_jpeg))

    assert info.color_mode == "CMYK"


def test_parse_exiftool_color_info() -> None:
    output = (
        "Color Transform                 : YCCK\n"
        "Profile Description             : Japan Color 2001 Coated\n"
        "Color Space Data                : CMYK\n"
        "Color Components                : 4\n"
    )
    info = parse_exiftool_color_info(output)
    assert info.is_ycck
    assert info.has_icc_profile
    assert info.icc_profile_name == "Japan Color 2001 Coated"
    assert info.color_space == "CMYK"
    assert info.color_components == "4"
