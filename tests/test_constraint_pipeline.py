"""Tests for the per-region pipeline, batch runs and end-to-end scenarios."""

import pandas as pd
import pytest
import rasterio
from shapely.geometry import LineString, Polygon, box

from conftest import TEST_CRS, make_frame, make_raster
from constraint_model.core.constraint_pipeline import ConstraintAnalysisPipeline
from constraint_model.core.data_model import CANDIDATE_STAGE, STAGE_ORDER, Region, RegionOutcome
from constraint_model.core.data_sources import InMemoryFeatureSource
from constraint_model.core.errors import InvalidParameter, ZeroCandidateArea

BOWTIE = Polygon([(50, 50), (150, 150), (150, 50), (50, 150)])


def _pipeline(config, sources, **constraints):
    config = dict(config, constraints=dict(config['constraints'], **constraints))
    return ConstraintAnalysisPipeline(config, sources=sources)


class TestScenarios:

    def test_everything_treatable(self, base_config, make_sources, region):
        """All qualifying cover, a road through the centre with a 600 m buffer."""
        pipeline = _pipeline(base_config, make_sources())
        result = pipeline.process_region(region)
        stats = result.statistics

        assert stats.region_area_m2 == pytest.approx(10000.0)
        assert stats.candidate_area_m2 == pytest.approx(10000.0)
        assert stats.stage_areas_m2['roads'] == pytest.approx(10000.0)
        assert stats.stage_fractions['roads'] == pytest.approx(1.0)

        assert len(result.vectors) == 1
        assert result.vectors['treatable'].iloc[0] == 1
        assert result.vectors.geometry.iloc[0].area == pytest.approx(10000.0)

    def test_zero_slope_limit(self, base_config, make_sources, region):
        """Slope limit of 0 % on 10 % slope leaves nothing from the slope stage on."""
        pipeline = _pipeline(base_config, make_sources(), max_slope_percent=0)
        stats = pipeline.process_region(region).statistics

        assert stats.stage_areas_m2['protected'] == pytest.approx(10000.0)
        for name in STAGE_ORDER[1:]:
            assert stats.stage_areas_m2[name] == 0.0
            assert stats.stage_fractions[name] == 0.0

    def test_no_qualifying_cover(self, base_config, make_sources, region):
        """No qualifying land cover: all areas zero, fractions undefined, no error."""
        pipeline = _pipeline(base_config, make_sources(landcover=make_raster(11)))
        with pytest.warns(ZeroCandidateArea):
            result = pipeline.process_region(region)

        stats = result.statistics
        assert stats.candidate_area_m2 == 0.0
        assert stats.landcover_area_m2 == pytest.approx(10000.0)
        assert all(stats.stage_areas_m2[n] == 0.0 for n in STAGE_ORDER)
        assert all(stats.stage_fractions[n] is None for n in STAGE_ORDER)
        assert len(result.vectors) == 0


class TestProcessRegion:

    def test_every_constraint_applied(self, base_config, make_sources, region):
        padus = make_frame([box(50, 50, 100, 150), box(100, 100, 120, 120)], GAP_Sts=['1', '2'], Des_Tp=['NP', 'NWR'])
        stream = make_frame([LineString([(140, 0), (140, 200)])])
        sources = make_sources(protected_lands=InMemoryFeatureSource(padus),
                               hydrography=InMemoryFeatureSource(stream))
        result = _pipeline(base_config, sources).process_region(region)

        assert list(result.stage_cells) == [CANDIDATE_STAGE] + list(STAGE_ORDER)
        counts = list(result.stage_cells.values())
        assert counts == sorted(counts, reverse=True)

        areas = result.statistics.stage_areas_m2
        assert areas['protected'] == pytest.approx(5000.0)
        assert areas['slope'] == pytest.approx(5000.0)
        assert areas['administrative'] == pytest.approx(4600.0)
        # 100 ft riparian buffer around x = 140 leaves only the x = 105 column
        assert areas['riparian'] == pytest.approx(800.0)
        assert areas['roads'] == areas['riparian']

        assert result.landcover_areas == {42: pytest.approx(10000.0)}
        assert set(result.vectors['treatable']) == {0, 1}

    def test_missing_datasets_give_empty_masks(self, base_config, make_sources, region):
        sources = make_sources()
        sources.slope = None
        stats = _pipeline(base_config, sources).process_region(region).statistics
        assert stats.stage_areas_m2['protected'] == pytest.approx(10000.0)
        assert stats.stage_areas_m2['slope'] == 0.0

    def test_no_landcover_coverage_records_zero_areas(self, base_config, make_sources):
        far = Region("far", "Outside land cover", box(1000, 1000, 1100, 1100))
        with pytest.warns(ZeroCandidateArea):
            result = _pipeline(base_config, make_sources()).process_region(far)

        stats = result.statistics
        assert stats.region_area_m2 == pytest.approx(10000.0)
        assert stats.landcover_area_m2 == 0.0
        assert all(stats.stage_areas_m2[n] == 0.0 for n in STAGE_ORDER)
        assert all(stats.stage_fractions[n] is None for n in STAGE_ORDER)
        assert len(result.vectors) == 0
        assert "no land cover" in result.note

    def test_invalid_parameters_abort_before_processing(self, base_config, make_sources):
        with pytest.raises(InvalidParameter):
            _pipeline(base_config, make_sources(), max_slope_percent=-1)

    def test_invalid_tile_size(self, base_config, make_sources):
        config = dict(base_config, processing=dict(base_config['processing'], tile_size=0))
        with pytest.raises(InvalidParameter):
            ConstraintAnalysisPipeline(config, sources=make_sources())


class TestTiledProcessing:
    """Large regions are processed in tiles with the same results as one window."""

    NOTCHED = Polygon([(50, 50), (150, 50), (150, 92), (92, 150), (50, 150)])

    @pytest.fixture
    def sources(self, make_sources):
        padus = make_frame([box(50, 50, 100, 150), box(100, 100, 120, 120)], GAP_Sts=['1', '2'], Des_Tp=['NP', 'NWR'])
        stream = make_frame([LineString([(140, 0), (140, 200)])])
        return make_sources(protected_lands=InMemoryFeatureSource(padus),
                            hydrography=InMemoryFeatureSource(stream))

    def _run(self, base_config, sources, region, tile_size):
        config = dict(base_config, processing=dict(base_config['processing'], tile_size=tile_size))
        return ConstraintAnalysisPipeline(config, sources=sources).process_region(region)

    @pytest.mark.parametrize("tile_size", [3, 4, 7])
    @pytest.mark.parametrize("shape", ["square", "notched"])
    def test_same_results_as_single_window(self, base_config, sources, region, tile_size, shape):
        if shape == "notched":
            region = Region("notched", "Notched", self.NOTCHED)
        whole = self._run(base_config, sources, region, 4096)
        tiled = self._run(base_config, sources, region, tile_size)

        assert whole.tile_count == 1
        assert tiled.tile_count > 1
        assert tiled.stage_cells == whole.stage_cells
        assert tiled.statistics == whole.statistics
        assert tiled.landcover_areas == whole.landcover_areas

        assert len(tiled.vectors) == len(whole.vectors)
        tiled_areas = tiled.vectors.groupby('treatable').geometry.apply(lambda g: g.area.sum())
        whole_areas = whole.vectors.groupby('treatable').geometry.apply(lambda g: g.area.sum())
        assert tiled_areas.to_dict() == pytest.approx(whole_areas.to_dict())

    def test_tile_count(self, base_config, sources, region):
        # 10 x 10 cell region grid in 3 x 3 tiles
        assert self._run(base_config, sources, region, 3).tile_count == 16


class TestBatchRun:

    @pytest.fixture
    def regions(self, region):
        return [
            region,
            Region("bowtie", "Self-intersecting", BOWTIE),
            Region("far", "Outside land cover", box(1000, 1000, 1100, 1100)),
            Region("r2", "South-west", box(0, 0, 50, 50)),
        ]

    @pytest.mark.parametrize("num_workers", [1, 3])
    def test_failures_isolated(self, base_config, make_sources, regions, num_workers):
        config = dict(base_config, processing=dict(base_config['processing'], num_workers=num_workers))
        run = ConstraintAnalysisPipeline(config, sources=make_sources()).run(regions)

        assert [o.region_id for o in run.outcomes] == ["r1", "bowtie", "far", "r2"]
        assert [o.status for o in run.outcomes] == [
            RegionOutcome.SUCCEEDED, RegionOutcome.SKIPPED, RegionOutcome.SUCCEEDED, RegionOutcome.SUCCEEDED
        ]
        assert "invalid geometry" in run.skipped[0].reason
        assert "no land cover" in run.outcomes[2].reason
        assert [s.region_id for s in run.statistics] == ["r1", "far", "r2"]
        assert run.statistics[1].candidate_area_m2 == 0.0
        assert run.statistics[2].candidate_area_m2 == pytest.approx(2500.0)

    def test_export(self, base_config, make_sources, regions, tmp_path):
        pipeline = ConstraintAnalysisPipeline(base_config, sources=make_sources())
        run = pipeline.run(regions)
        written = pipeline.export(run, regions)

        statistics = pd.read_csv(written['statistics'])
        assert list(statistics['region_id']) == ['r1', 'far', 'r2']
        assert statistics['pct_rmn5_roads'].isna().tolist() == [False, True, False]
        assert statistics.loc[0, 'rmn5_roads_area_m2'] == pytest.approx(10000.0)
        summary = pd.read_csv(written['run_summary'])
        assert list(summary['status']).count('skipped') == 1
        assert written['vectors'].name == 'test_vectors.gpkg'


class TestRunFullPipeline:

    def _write_geotiff(self, path, raster):
        data = raster.data
        with rasterio.open(path, 'w', driver='GTiff', height=data.shape[0], width=data.shape[1], count=1,
                           dtype=data.dtype, crs=TEST_CRS, transform=raster.transform,
                           nodata=raster.nodata) as dst:
            dst.write(data, 1)
        return str(path)

    def test_from_files(self, base_config, forest_raster, tmp_path):
        regions_file = tmp_path / "regions.gpkg"
        make_frame([box(50, 50, 150, 150), box(0, 0, 50, 50)], FOREST_ID=['a', 'b'], NAME=['A', 'B'],
                   STATE=['Montana', 'Idaho']).set_crs(TEST_CRS).to_file(regions_file, driver="GPKG")
        roads_file = tmp_path / "roads.gpkg"
        make_frame([LineString([(0, 100), (200, 100)])]).set_crs(TEST_CRS).to_file(roads_file, driver="GPKG")

        config = dict(base_config)
        config['regions'] = {'file': str(regions_file), 'id_field': 'FOREST_ID', 'name_field': 'NAME',
                             'filter_field': 'STATE', 'filter_values': ['Montana'],
                             'attribute_fields': ['STATE']}
        config['data'] = {
            'landcover_file': self._write_geotiff(tmp_path / "landcover.tif", forest_raster),
            'slope_file': self._write_geotiff(tmp_path / "slope.tif", make_raster(5.0, 'float32', -9999.0)),
            'protected_lands_files': [str(tmp_path / "padus.gpkg")],
            'critical_habitat_files': [str(tmp_path / "crithab.gpkg")],
            'hydrography_files': [str(tmp_path / "nhd.gpkg")],
            'roads_files': [str(roads_file)],
        }

        assert ConstraintAnalysisPipeline(config).run_full_pipeline()

        output_dir = tmp_path / 'results'
        statistics = pd.read_csv(output_dir / 'test_statistics.csv')
        assert list(statistics['region_id']) == ['a']
        assert statistics.loc[0, 'STATE'] == 'Montana'
        assert statistics.loc[0, 'pct_rmn5_roads'] == pytest.approx(1.0)
        assert (output_dir / 'test_vectors.gpkg').exists()
        assert (output_dir / 'test_landcover_area.csv').exists()
        assert (output_dir / 'config_used.yaml').exists()
