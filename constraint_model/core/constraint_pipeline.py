"""
Main execution pipeline for the treatable area constraint analysis.

This module orchestrates the complete per-region workflow:
- Classifying the land-cover raster into the candidate cover mask
- Building the five constraint masks concurrently
- Compositing them in regulatory order with a snapshot after each stage
- Area accounting and polygonization of the treatable area, tile by tile
  for regions larger than one processing tile
- Exporting statistics, polygons and a run summary for a batch of regions

Regions are independent: a failure in one region is logged, recorded as
skipped and the batch continues.

Author: Diego Bengochea
"""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from tqdm import tqdm

from shared_utils import (
    setup_logging, load_config, validate_config, get_config_value,
    log_pipeline_start, log_pipeline_end, log_section, save_config, resolve_path, resolve_paths
)
from shared_utils.central_data_paths_constants import (
    REGIONS_FILE, LANDCOVER_FILE, DEM_FILE, PADUS_FILES, CRITICAL_HABITAT_FILE,
    HYDROGRAPHY_FILES, ROADS_FILES, CONSTRAINT_RESULTS_DIR
)

from .area_accounting import area_statistics_from_counts, stage_cell_counts
from .compositor import check_monotonic, compose_stages, final_stage
from .data_model import (
    AnalysisGrid, CANDIDATE_STAGE, DEFAULT_TILE_SIZE, STAGE_ORDER,
    ConstraintRunResult, Region, RegionOutcome, RegionResult
)
from .data_sources import (
    DEFAULT_CRS, DataSources, DemSlopeSource, GeoTiffRasterSource, VectorFileSource
)
from .errors import ConstraintAnalysisError, GeometryError, InvalidParameter, MissingExternalData
from .exclusion_masks import (
    build_administrative_mask, build_protected_mask, build_riparian_mask,
    build_roads_mask, build_slope_mask
)
from .exporter import (
    combine_vectors, export_all, landcover_areas_to_dataframe, statistics_to_dataframe
)
from .landcover import classify_landcover, landcover_class_areas
from .parameters import ConstraintParameters
from .region_loader import load_regions, split_region, validate_region
from .vectorizer import classify_treatable, empty_vectors, merge_tile_vectors, vectorize_treatable

REQUIRED_SECTIONS = ['constraints', 'processing', 'logging']


def sources_from_config(config: Dict[str, Any]) -> DataSources:
    """
    Build file-backed data sources from the ``data`` section of a configuration.

    Paths default to the central data locations. A DEM is only used when no
    precomputed slope raster is configured.
    """
    data = config.get('data', {}) or {}
    crs = get_config_value(config, 'processing.crs', DEFAULT_CRS)

    landcover = GeoTiffRasterSource(resolve_path(data.get('landcover_file') or LANDCOVER_FILE), name='land cover')

    if data.get('slope_file'):
        slope = GeoTiffRasterSource(resolve_path(data['slope_file']), name='slope')
    else:
        slope = DemSlopeSource(resolve_path(data.get('dem_file') or DEM_FILE))

    return DataSources(
        landcover=landcover,
        slope=slope,
        protected_lands=VectorFileSource(
            resolve_paths(data.get('protected_lands_files') or PADUS_FILES), name='protected lands'
        ),
        critical_habitat=VectorFileSource(
            resolve_paths(data.get('critical_habitat_files') or [CRITICAL_HABITAT_FILE]), name='critical habitat'
        ),
        hydrography=VectorFileSource(
            resolve_paths(data.get('hydrography_files') or HYDROGRAPHY_FILES), name='hydrography'
        ),
        roads=VectorFileSource(
            resolve_paths(data.get('roads_files') or ROADS_FILES), name='roads'
        ),
        crs=crs,
    )


def regions_from_config(config: Dict[str, Any]) -> List[Region]:
    """Load the regions of interest described by the ``regions`` section."""
    section = config.get('regions', {}) or {}
    return load_regions(
        resolve_path(section.get('file') or REGIONS_FILE),
        id_field=section.get('id_field'),
        name_field=section.get('name_field'),
        filter_field=section.get('filter_field'),
        filter_values=section.get('filter_values'),
        layer=section.get('layer'),
    )


class ConstraintAnalysisPipeline:
    """
    Treatable area analysis over a set of regions.

    Each region goes through land-cover classification, five constraint masks,
    sequential compositing, area accounting and polygonization. Constraint
    parameters are validated on construction so an invalid configuration
    aborts before any region is processed.
    """

    def __init__(self, config: Optional[Union[str, Path, Dict[str, Any]]] = None,
                 sources: Optional[DataSources] = None):
        """
        Initialize the constraint analysis pipeline.

        Args:
            config: Configuration dictionary or path to a YAML configuration
            sources: Data collaborators; built from the configured file paths
                when omitted

        Raises:
            InvalidParameter: If the constraint parameters are invalid
        """
        if isinstance(config, dict):
            self.config = config
        else:
            self.config = load_config(config, component_name='constraint_model')

        validate_config(self.config, REQUIRED_SECTIONS)

        log_config = self.config.get('logging', {}) or {}
        self.logger = setup_logging(
            level=log_config.get('level', 'INFO'),
            component_name='constraint_analysis',
            log_file=log_config.get('log_file')
        )

        self.params = ConstraintParameters.from_config(self.config)

        processing = self.config.get('processing', {}) or {}
        self.num_workers = max(int(processing.get('num_workers', 1)), 1)
        self.mask_workers = max(int(processing.get('mask_workers', len(STAGE_ORDER))), 1)
        self.tile_size = int(processing.get('tile_size', DEFAULT_TILE_SIZE))
        if self.tile_size < 1:
            raise InvalidParameter(f"processing.tile_size must be a positive cell count, got {self.tile_size}")

        self._sources = sources

        self.logger.info(f"Initialized ConstraintAnalysisPipeline with parameters {self.params.as_dict()}")

    @property
    def sources(self) -> DataSources:
        if self._sources is None:
            self._sources = sources_from_config(self.config)
        return self._sources

    def build_masks(self, region: Region, grid: AnalysisGrid, region_mask) -> Dict[str, Any]:
        """
        Build the five constraint masks of a region concurrently.

        All builders complete before the masks are returned.
        """
        sources = self.sources
        params = self.params
        tasks = {
            'protected': (build_protected_mask, (
                region, grid, region_mask, sources.protected_lands, params.gap_status_codes)),
            'slope': (build_slope_mask, (
                region, grid, region_mask, sources.slope, params.max_slope_percent, sources.crs)),
            'administrative': (build_administrative_mask, (
                region, grid, region_mask, sources.protected_lands, sources.critical_habitat)),
            'riparian': (build_riparian_mask, (
                region, grid, region_mask, sources.hydrography, params.riparian_buffer_m)),
            'roads': (build_roads_mask, (
                region, grid, region_mask, sources.roads, params.road_buffer_m)),
        }

        masks = {}
        with ThreadPoolExecutor(max_workers=self.mask_workers) as executor:
            futures = {executor.submit(func, *args): name for name, (func, args) in tasks.items()}
            for future in as_completed(futures):
                masks[futures[future]] = future.result()
        return masks

    def process_tile(self, region: Region, part: Region):
        """
        Constraint analysis of one part of a region.

        Region membership of cells is decided on the whole region geometry;
        data sources are queried for the part only.

        Returns:
            tuple: (stage cell counts, land-cover class areas, polygons)
        """
        landcover = self.sources.landcover.classify(part)
        grid = AnalysisGrid.from_raster(landcover)
        region_mask = grid.rasterize([region.geometry])

        candidate = classify_landcover(landcover, region_mask, self.params.landcover_classes)
        masks = self.build_masks(part, grid, region_mask)
        stages = compose_stages(candidate, masks)
        if not check_monotonic(stages):
            raise ConstraintAnalysisError(f"Region {region.region_id}: stage snapshots are not nested")

        classified = classify_treatable(candidate, final_stage(stages).included)
        vectors = vectorize_treatable(classified, grid.transform, region.region_id, crs=self.sources.crs)
        return stage_cell_counts(stages), landcover_class_areas(landcover, region_mask), vectors

    def process_region(self, region: Region) -> RegionResult:
        """
        Run the full constraint analysis for one region.

        Large regions are processed tile by tile; stage cell counts and class
        areas are summed over the tiles and polygons cut by tile edges are
        joined again. A region without land-cover coverage has no candidate
        cells and is recorded with zero areas.

        Args:
            region: Region to analyse

        Returns:
            RegionResult with statistics, stage cell counts and treatable polygons

        Raises:
            GeometryError: If the region geometry cannot be analysed
        """
        validate_region(region)
        logger = self.logger

        try:
            footprint = self.sources.landcover.footprint(region)
        except MissingExternalData as e:
            logger.warning(f"{e}; recording zero areas")
            return self._zero_result(region, note=f"no land cover: {e}")

        parts = split_region(region, footprint, self.tile_size)
        if len(parts) > 1:
            logger.info(f"Region {region.region_id}: grid {footprint.shape} split into {len(parts)} tiles")

        stage_cells = {name: 0 for name in (CANDIDATE_STAGE,) + STAGE_ORDER}
        class_areas: Dict[int, float] = {}
        frames = []
        for part in parts:
            part_cells, part_areas, part_vectors = self.process_tile(region, part)
            for name, count in part_cells.items():
                stage_cells[name] += count
            for code, area in part_areas.items():
                class_areas[code] = class_areas.get(code, 0.0) + area
            frames.append(part_vectors)

        if stage_cells[CANDIDATE_STAGE] == 0 and not class_areas:
            logger.warning(f"Region {region.region_id} covers no land-cover cell of the analysis grid")
        logger.debug(f"Region {region.region_id}: {stage_cells[CANDIDATE_STAGE]:,} candidate cells")

        statistics = area_statistics_from_counts(
            region, stage_cells, footprint.cell_area,
            landcover_area_m2=sum(class_areas.values())
        )
        seams = footprint.seams(self.tile_size) if len(parts) > 1 else []
        vectors = merge_tile_vectors(frames, seams, crs=self.sources.crs)

        treatable_area = statistics.stage_areas_m2[STAGE_ORDER[-1]]
        logger.info(f"Region {region.region_id} ({region.name}): candidate {statistics.candidate_area_m2:,.0f} m², "
                    f"treatable {treatable_area:,.0f} m²")

        return RegionResult(
            region=region,
            statistics=statistics,
            stage_cells=stage_cells,
            vectors=vectors,
            landcover_areas=dict(sorted(class_areas.items())),
            tile_count=len(parts),
        )

    def _zero_result(self, region: Region, note: str) -> RegionResult:
        stage_cells = {name: 0 for name in (CANDIDATE_STAGE,) + STAGE_ORDER}
        return RegionResult(
            region=region,
            statistics=area_statistics_from_counts(region, stage_cells, 0.0, landcover_area_m2=0.0),
            stage_cells=stage_cells,
            vectors=empty_vectors(self.sources.crs),
            tile_count=0,
            note=note,
        )

    def _process_safely(self, region: Region):
        """Process a region, turning failures into a skipped outcome."""
        try:
            result = self.process_region(region)
            return result, RegionOutcome(region.region_id, region.name, RegionOutcome.SUCCEEDED, result.note)
        except GeometryError as e:
            reason = f"invalid geometry: {e}"
        except MissingExternalData as e:
            reason = f"missing data: {e}"
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"
        self.logger.error(f"Skipping region {region.region_id}: {reason}")
        return None, RegionOutcome(region.region_id, region.name, RegionOutcome.SKIPPED, reason)

    def run(self, regions: Sequence[Region]) -> ConstraintRunResult:
        """
        Process a batch of regions independently.

        Regions are processed in parallel when ``processing.num_workers`` > 1.
        Results and outcomes keep the input order.

        Args:
            regions: Regions to analyse

        Returns:
            ConstraintRunResult
        """
        regions = list(regions)
        processed = [None] * len(regions)

        if self.num_workers == 1 or len(regions) <= 1:
            for i, region in enumerate(tqdm(regions, desc="Processing regions")):
                processed[i] = self._process_safely(region)
        else:
            with ThreadPoolExecutor(max_workers=self.num_workers) as executor:
                futures = {executor.submit(self._process_safely, region): i for i, region in enumerate(regions)}
                for future in tqdm(as_completed(futures), total=len(futures), desc="Processing regions"):
                    processed[futures[future]] = future.result()

        run_result = ConstraintRunResult()
        for result, outcome in processed:
            if result is not None:
                run_result.results.append(result)
            run_result.outcomes.append(outcome)

        self.logger.info(f"Processed {len(run_result.succeeded)}/{len(regions)} regions, "
                         f"{len(run_result.skipped)} skipped")
        return run_result

    def export(self, run_result: ConstraintRunResult, regions: Optional[Sequence[Region]] = None,
               output_dir: Optional[Union[str, Path]] = None) -> Dict[str, Optional[Path]]:
        """Write the statistics table, treatable polygons and run summary of a run."""
        output = self.config.get('output', {}) or {}
        output_dir = Path(output_dir or output.get('output_dir') or CONSTRAINT_RESULTS_DIR)
        prefix = output.get('prefix', 'constraints')

        statistics = statistics_to_dataframe(
            run_result.statistics,
            regions=regions,
            attribute_fields=get_config_value(self.config, 'regions.attribute_fields')
        )
        vectors = combine_vectors([r.vectors for r in run_result.results], crs=self.sources.crs)
        landcover_areas = None
        if output.get('export_landcover_areas', True):
            landcover_areas = landcover_areas_to_dataframe(run_result.results)

        return export_all(
            statistics, vectors, run_result.outcomes, output_dir, prefix,
            driver=output.get('vector_driver', 'GPKG'),
            landcover_areas=landcover_areas,
        )

    def run_full_pipeline(self) -> bool:
        """
        Load the configured regions and data, analyse every region and export
        the results.

        Returns:
            bool: True if every region was processed
        """
        start_time = time.time()
        log_pipeline_start(self.logger, "Treatable Area Constraint Analysis", self.config)

        try:
            log_section(self.logger, "Loading regions")
            regions = regions_from_config(self.config)
            if not regions:
                self.logger.error("No regions selected, nothing to process")
                log_pipeline_end(self.logger, "Treatable Area Constraint Analysis", False, time.time() - start_time)
                return False

            log_section(self.logger, "Processing regions")
            run_result = self.run(regions)

            log_section(self.logger, "Exporting results")
            written = self.export(run_result, regions)
            for name, path in written.items():
                if path is not None:
                    self.logger.info(f"  {name}: {path}")

            statistics_path = written.get('statistics')
            if statistics_path is not None:
                save_config(self.config, statistics_path.parent / 'config_used.yaml')

        except Exception as e:
            self.logger.error(f"Pipeline execution failed: {str(e)}")
            import traceback
            self.logger.error(traceback.format_exc())
            log_pipeline_end(self.logger, "Treatable Area Constraint Analysis", False, time.time() - start_time)
            return False

        success = len(run_result.skipped) == 0
        log_pipeline_end(self.logger, "Treatable Area Constraint Analysis", success, time.time() - start_time)
        return success
