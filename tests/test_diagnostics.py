from __future__ import annotations

import asyncio
from types import SimpleNamespace

from pressready.color.diagnostics import STATUS_MISSING, STATUS_PARTIAL, STATUS_READY, assess_readiness
from pressready.color.models import ConversionResult


def _fake_engine(tmp_path, success: bool):
    calls = []

    async def convert_pdf(source, destination, *, target_dpi):
        calls.append((source, destination, target_dpi))
        if success:
            return ConversionResult(success=True, used_cmyk=True, used_icc=True, method="imagemagick-icc")
        return ConversionResult.failure("none", "all methods failed")

    return SimpleNamespace(temp_dir=tmp_path / "scratch", convert_pdf=convert_pdf, calls=calls)


def test_missing_profile_and_tools(empty_profiles, availability_factory) -> None:
    report = asyncio.run(assess_readiness(empty_profiles, availability_factory()))

    assert not report.ready
    assert report.status == STATUS_MISSING
    assert report.conversion_works is None
    assert any("JapanColor2001Coated.icc" in rec for rec in report.recommendations)
    assert any("jpgicc" in rec for rec in report.recommendations)


def test_ready_after_successful_trial(profiles, availability_factory, tmp_path) -> None:
    engine = _fake_engine(tmp_path, success=True)

    report = asyncio.run(assess_readiness(profiles, availability_factory("imagemagick"), engine=engine))

    assert report.ready
    assert report.status == STATUS_READY
    assert report.trial_method == "imagemagick-icc"
    assert report.available_tools == ("imagemagick",)
    source, destination, dpi = engine.calls[0]
    assert source.suffix == ".pdf" and destination.suffix == ".pdf"
    assert not source.exists()


def test_partial_when_trial_fails(profiles, availability_factory, tmp_path) -> None:
    engine = _fake_engine(tmp_path, success=False)

    report = asyncio.run(assess_readiness(profiles, availability_factory("ghostscript"), engine=engine))

    assert not report.ready
    assert report.status == STATUS_PARTIAL
    assert report.conversion_works is False
    assert report.recommendations


def test_trial_can_be_skipped(profiles, availability_factory) -> None:
    report = asyncio.run(assess_readiness(profiles, availability_factory("jpgicc"), run_trial=False))

    assert report.ready
    assert report.conversion_works is None
