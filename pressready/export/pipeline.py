"""Export orchestration: SVG regions in, validated CMYK PDFs out.

Each region is processed in turn: render the SVG, convert the PDF to CMYK,
then validate colour space, vector integrity and colour consistency of the
converted document. Regions are independent; one failing region never
aborts its siblings.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from pathlib import Path
from typing import Any, Iterable, Sequence

from ..color.consistency import ConsistencyReport, check_color_consistency
from ..color.engine import CMYKConversionEngine
from ..color.models import ConversionResult, validate_dpi
from ..color.preprocess import PreprocessOptions, preprocess_image
from ..color.validators import WeightedConsensus, validate_color_space
from ..color.vector import VectorIntegrityReport, validate_vector_integrity
from ..core.config import DEFAULT_CMYK_PROFILE, load_settings
from ..core.utils import resolve_path, to_jsonable
from ..exceptions import InvalidInputError, PressReadyError
from .renderer import InkscapeRenderer, Renderer

_LOGGER = logging.getLogger("pressready.export.pipeline")

TASK_ID_PREFIX = "export-task-"
SINGLE_REGION_ID = "design"


def new_task_id() -> str:
    return f"{TASK_ID_PREFIX}{uuid.uuid4()}"


@dataclasses.dataclass(frozen=True)
class ExportRegion:
    region_id: str
    svg_path: Path

    def __post_init__(self) -> None:
        region_id = str(self.region_id).strip()
        if not region_id or region_id in {".", ".."} or "/" in region_id or "\\" in region_id:
            raise InvalidInputError(f"Invalid region id: {self.region_id!r}")
        object.__setattr__(self, "region_id", region_id)
        object.__setattr__(self, "svg_path", resolve_path(self.svg_path))


@dataclasses.dataclass(frozen=True)
class PreprocessedImage:
    path: Path
    original_bytes: int
    processed_bytes: int
    error: str | None = None

    @property
    def changed(self) -> bool:
        return self.error is None and self.original_bytes != self.processed_bytes


@dataclasses.dataclass(frozen=True)
class RegionResult:
    region_id: str
    success: bool
    svg_path: Path
    pdf_path: Path | None = None
    cmyk_pdf_path: Path | None = None
    conversion: ConversionResult | None = None
    color_validation: WeightedConsensus | None = None
    vector_integrity: VectorIntegrityReport | None = None
    consistency: ConsistencyReport | None = None
    error: str | None = None

    @property
    def is_vector(self) -> bool:
        return self.vector_integrity is not None and self.vector_integrity.is_vector


@dataclasses.dataclass(frozen=True)
class ExportReport:
    task_id: str
    export_type: str
    target_dpi: int
    icc_profile: str
    regions: tuple[RegionResult, ...]
    images: tuple[PreprocessedImage, ...] = ()

    @property
    def region_count(self) -> int:
        return len(self.regions)

    @property
    def successful_regions(self) -> int:
        return sum(1 for region in self.regions if region.success)

    @property
    def used_cmyk(self) -> bool:
        return any(region.conversion is not None and region.conversion.success for region in self.regions)

    @property
    def used_icc(self) -> bool:
        return any(
            region.conversion is not None and region.conversion.success and region.conversion.used_icc
            for region in self.regions
        )

    @property
    def conversion_methods(self) -> tuple[str, ...]:
        methods: list[str] = []
        for region in self.regions:
            conversion = region.conversion
            if conversion is not None and conversion.success and conversion.method not in methods:
                methods.append(conversion.method)
        return tuple(methods)

    @property
    def vector_intact(self) -> bool:
        return bool(self.regions) and all(region.is_vector for region in self.regions)

    def to_dict(self) -> dict[str, Any]:
        data = to_jsonable(self)
        data.update(
            region_count=self.region_count,
            successful_regions=self.successful_regions,
            used_cmyk=self.used_cmyk,
            used_icc=self.used_icc,
            conversion_methods=list(self.conversion_methods),
            vector_intact=self.vector_intact,
        )
        return data


class ExportPipeline:
    """Sequential per-region export driver.

    Every task writes below ``<export_dir>/<task_id>/``; a region writes
    ``<region_id>/<region_id>.pdf`` and ``<region_id>/<region_id>-cmyk.pdf``.
    """

    def __init__(
        self,
        engine: CMYKConversionEngine,
        renderer: Renderer | None = None,
        *,
        export_dir: str | Path | None = None,
        icc_profile: str = DEFAULT_CMYK_PROFILE,
        preprocess_options: PreprocessOptions | None = None,
        check_consistency: bool = True,
    ) -> None:
        self.engine = engine
        self.availability = engine.availability
        self.renderer = renderer if renderer is not None else InkscapeRenderer(engine.availability)
        self.export_dir = resolve_path(export_dir) if export_dir is not None else load_settings().export_dir
        self.icc_profile = icc_profile
        self.preprocess_options = preprocess_options or PreprocessOptions(preserve_for_print=True)
        self.check_consistency = check_consistency

    async def export_single(
        self,
        svg_path: str | Path,
        *,
        target_dpi: int,
        images: Iterable[str | Path] = (),
        task_id: str | None = None,
    ) -> ExportReport:
        region = ExportRegion(SINGLE_REGION_ID, Path(svg_path))
        return await self._export([region], "single", target_dpi=target_dpi, images=images, task_id=task_id)

    async def export_regions(
        self,
        regions: Sequence[ExportRegion],
        *,
        target_dpi: int,
        images: Iterable[str | Path] = (),
        task_id: str | None = None,
    ) -> ExportReport:
        return await self._export(regions, "multiRegion", target_dpi=target_dpi, images=images, task_id=task_id)

    async def _export(
        self,
        regions: Sequence[ExportRegion],
        export_type: str,
        *,
        target_dpi: int,
        images: Iterable[str | Path],
        task_id: str | None,
    ) -> ExportReport:
        validate_dpi(target_dpi)
        task_id = task_id or new_task_id()
        task_dir = self.export_dir / task_id
        task_dir.mkdir(parents=True, exist_ok=True)
        _LOGGER.info("Export %s: %s region(s) at %s dpi", task_id, len(regions), target_dpi)

        processed_images = tuple([await self._preprocess_image(resolve_path(path)) for path in images])

        results: list[RegionResult] = []
        for region in regions:
            results.append(await self._process_region(region, task_dir, target_dpi))

        report = ExportReport(
            task_id=task_id,
            export_type=export_type,
            target_dpi=target_dpi,
            icc_profile=self.icc_profile,
            regions=tuple(results),
            images=processed_images,
        )
        _LOGGER.info(
            "Export %s finished: %s/%s regions succeeded, methods=%s, vector intact=%s",
            task_id,
            report.successful_regions,
            report.region_count,
            ", ".join(report.conversion_methods) or "none",
            report.vector_intact,
        )
        return report

    async def _preprocess_image(self, path: Path) -> PreprocessedImage:
        try:
            original = path.read_bytes()
        except OSError as exc:
            _LOGGER.warning("Skipping image %s: %s", path, exc)
            return PreprocessedImage(path=path, original_bytes=0, processed_bytes=0, error=str(exc))

        processed = await preprocess_image(original, self.preprocess_options, engine=self.engine)
        if processed is not original:
            try:
                path.write_bytes(processed)
            except OSError as exc:
                _LOGGER.warning("Unable to write pre-processed image %s: %s", path, exc)
                return PreprocessedImage(
                    path=path,
                    original_bytes=len(original),
                    processed_bytes=len(original),
                    error=str(exc),
                )
        return PreprocessedImage(path=path, original_bytes=len(original), processed_bytes=len(processed))

    async def _process_region(self, region: ExportRegion, task_dir: Path, target_dpi: int) -> RegionResult:
        region_dir = task_dir / region.region_id
        pdf_path = region_dir / f"{region.region_id}.pdf"
        cmyk_path = region_dir / f"{region.region_id}-cmyk.pdf"
        try:
            region_dir.mkdir(parents=True, exist_ok=True)
            await self.renderer.render(region.svg_path, pdf_path, dpi=target_dpi)
            conversion = await self.engine.convert_pdf(
                pdf_path,
                cmyk_path,
                target_dpi=target_dpi,
                icc_profile=self.icc_profile,
            )
        except (PressReadyError, OSError) as exc:
            _LOGGER.error("Region %s failed: %s", region.region_id, exc)
            return RegionResult(
                region_id=region.region_id,
                success=False,
                svg_path=region.svg_path,
                pdf_path=pdf_path if pdf_path.is_file() else None,
                error=str(exc),
            )

        if not conversion.success:
            _LOGGER.error("Region %s: CMYK conversion failed: %s", region.region_id, conversion.error)
            return RegionResult(
                region_id=region.region_id,
                success=False,
                svg_path=region.svg_path,
                pdf_path=pdf_path,
                conversion=conversion,
                error=conversion.error,
            )

        color_validation = await validate_color_space(cmyk_path, self.availability)
        vector_integrity = await validate_vector_integrity(cmyk_path)
        consistency = None
        if self.check_consistency:
            consistency = await check_color_consistency(pdf_path, cmyk_path, self.availability)

        _LOGGER.info("Region %s done with %s", region.region_id, conversion.method)
        return RegionResult(
            region_id=region.region_id,
            success=True,
            svg_path=region.svg_path,
            pdf_path=pdf_path,
            cmyk_pdf_path=cmyk_path,
            conversion=conversion,
            color_validation=color_validation,
            vector_integrity=vector_integrity,
            consistency=consistency,
        )


__all__ = [
    "ExportPipeline",
    "ExportRegion",
    "ExportReport",
    "PreprocessedImage",
    "RegionResult",
    "new_task_id",
]
