"""Command-line builders for the external colour and inspection tools."""

from __future__ import annotations

from pathlib import Path

from ..core.config import PIXEL_SAMPLE_POINT
from .models import RenderingIntent


def build_magick_icc_pdf_command(
    executable: str,
    source: Path,
    output: Path,
    *,
    destination_profile: Path,
    source_profile: Path | None,
    intent: RenderingIntent,
    quality: int,
    dpi: int,
) -> list[str]:
    """ImageMagick PDF conversion through an explicit profile pair.

    ``-intent`` and ``-black-point-compensation`` must precede ``-profile``
    for ImageMagick to honour them. The density is applied both when the
    source is rasterised and when the output is written.
    """

    command = [
        executable,
        "-density",
        str(dpi),
        str(source),
        "-intent",
        intent.magick_name,
        "-black-point-compensation",
    ]
    if source_profile is not None:
        command += ["-profile", str(source_profile)]
    command += [
        "-profile",
        str(destination_profile),
        "-colorspace",
        "CMYK",
        "-set",
        "colorspace",
        "CMYK",
        "-define",
        "pdf:use-cmyk=true",
        "-type",
        "ColorSeparation",
        "-interpolate",
        "catrom",
        "-filter",
        "Lanczos",
        "-quality",
        str(quality),
        "-compress",
        "jpeg",
        "-density",
        str(dpi),
        str(output),
    ]
    return command


def build_magick_basic_pdf_command(
    executable: str,
    source: Path,
    output: Path,
    *,
    destination_profile: Path | None,
    intent: RenderingIntent,
    quality: int,
    dpi: int,
) -> list[str]:
    """ImageMagick PDF conversion with the destination profile only, or a plain CMYK cast."""

    command = [executable, "-density", str(dpi), str(source), "-intent", intent.magick_name]
    if destination_profile is not None:
        command += ["-profile", str(destination_profile)]
    command += [
        "-colorspace",
        "CMYK",
        "-define",
        "pdf:use-cmyk=true",
        "-quality",
        str(quality),
        "-density",
        str(dpi),
        str(output),
    ]
    return command


def build_ghostscript_cmyk_command(
    executable: str,
    source: Path,
    output: Path,
    *,
    quality: int,
    dpi: int,
) -> list[str]:
    """Ghostscript ``pdfwrite`` rewrite to DeviceCMYK.

    No ICC options are passed: Ghostscript builds without ICC support have
    been seen to inject wrong CMYK values when asked for them.
    """

    return [
        executable,
        "-sDEVICE=pdfwrite",
        "-dNOPAUSE",
        "-dBATCH",
        "-dSAFER",
        "-dCompatibilityLevel=1.4",
        "-sColorConversionStrategy=CMYK",
        "-sProcessColorModel=DeviceCMYK",
        "-dConvertCMYKImagesToRGB=false",
        "-dConvertImagesToIndexed=false",
        f"-dColorImageResolution={dpi}",
        f"-dGrayImageResolution={dpi}",
        "-dAutoFilterColorImages=false",
        "-dColorImageFilter=/DCTEncode",
        f"-sOutputFile={output}",
        "-c",
        f"<< /ColorImageDict << /QFactor {_qfactor(quality)} /Blend 1 /HSamples [1 1 1 1] /VSamples [1 1 1 1] >> >> setdistillerparams",
        "-f",
        str(source),
    ]


def _qfactor(quality: int) -> str:
    # Distiller QFactor runs the other way: 0.15 is near-lossless, 1.0 is heavy.
    factor = max(0.15, round(1.0 - quality / 100.0, 2))
    return f"{factor:.2f}"


def build_jpgicc_command(
    source: Path,
    output: Path,
    *,
    intent: RenderingIntent,
    quality: int,
    input_profile: Path | None = None,
    output_profile: Path | None = None,
    executable: str = "jpgicc",
) -> list[str]:
    """LittleCMS ``jpgicc``; without explicit profiles it uses the embedded one."""

    command = [executable, "-q", str(quality), "-b", "-t", str(intent.lcms_code)]
    if input_profile is not None:
        command += ["-i", str(input_profile)]
    if output_profile is not None:
        command += ["-o", str(output_profile)]
    command += [str(source), str(output)]
    return command


def build_magick_image_command(
    executable: str,
    source: Path,
    output: Path,
    *,
    source_profile: Path,
    target_profile: Path,
    intent: RenderingIntent,
    quality: int,
) -> list[str]:
    """ImageMagick single-image CMYK to RGB through an explicit profile pair."""

    return [
        executable,
        str(source),
        "-intent",
        intent.magick_name,
        "-black-point-compensation",
        "-profile",
        str(source_profile),
        "-profile",
        str(target_profile),
        "-quality",
        str(quality),
        str(output),
    ]


def build_magick_ycck_command(
    executable: str,
    source: Path,
    output: Path,
    *,
    source_profile: Path,
    target_profile: Path,
    quality: int,
) -> list[str]:
    """Two-stage YCCK decode: declare CMYK, apply the source profile, then the target.

    Perceptual intent and black-point compensation are forced.
    """

    return [
        executable,
        str(source),
        "-colorspace",
        "CMYK",
        "-intent",
        RenderingIntent.PERCEPTUAL.magick_name,
        "-black-point-compensation",
        "-profile",
        str(source_profile),
        "-profile",
        str(target_profile),
        "-colorspace",
        "sRGB",
        "-quality",
        str(quality),
        str(output),
    ]


def build_pixel_sample_command(executable: str, source: Path) -> list[str]:
    x, y = PIXEL_SAMPLE_POINT
    return [executable, f"{source}[0]", "-format", f"%[pixel:p{{{x},{y}}}]", "info:"]


def build_exiftool_color_command(source: Path, executable: str = "exiftool") -> list[str]:
    return [
        executable,
        "-ColorSpace",
        "-Colorants",
        "-PrintColorMode",
        "-DeviceColorSpace",
        "-ICCProfileDescription",
        "-ColorComponents",
        str(source),
    ]


def build_exiftool_jpeg_command(source: Path, executable: str = "exiftool") -> list[str]:
    """Tags read to decide how a CMYK JPEG must be decoded."""

    return [
        executable,
        "-ColorTransform",
        "-ICCProfileName",
        "-ProfileDescription",
        "-ColorMode",
        "-ColorSpaceData",
        "-ColorSpace",
        "-ColorComponents",
        str(source),
    ]


def build_inkcov_command(executable: str, source: Path) -> list[str]:
    return [executable, "-q", "-dNOPAUSE", "-dBATCH", "-dSAFER", "-sDEVICE=inkcov", "-o", "-", str(source)]


def build_compare_command(prefix: list[str], original: Path, converted: Path) -> list[str]:
    return [*prefix, "-metric", "RMSE", f"{original}[0]", f"{converted}[0]", "null:"]


__all__ = [
    "build_magick_icc_pdf_command",
    "build_magick_basic_pdf_command",
    "build_ghostscript_cmyk_command",
    "build_jpgicc_command",
    "build_magick_image_command",
    "build_magick_ycck_command",
    "build_pixel_sample_command",
    "build_exiftool_color_command",
    "build_exiftool_jpeg_command",
    "build_inkcov_command",
    "build_compare_command",
]
