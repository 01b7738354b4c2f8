"""Tests for region loading and validation."""

import pytest
from shapely.geometry import LineString, Polygon, box

from conftest import make_frame
from constraint_model.core.data_model import Region
from constraint_model.core.errors import GeometryError
from constraint_model.core.region_loader import load_regions, regions_from_geodataframe, validate_region

BOWTIE = Polygon([(50, 50), (150, 150), (150, 50), (50, 150)])


@pytest.fixture
def forests():
    return make_frame(
        [box(0, 0, 10, 10), box(20, 0, 30, 10), box(40, 0, 50, 10)],
        OBJECTID=[11, 12, 13],
        NAME=['Lolo', 'Bitterroot', 'Deschutes'],
        STATE=['Montana', 'Montana', 'Oregon'],
    )


class TestValidateRegion:

    def test_valid(self, region):
        validate_region(region)

    @pytest.mark.parametrize("geometry", [BOWTIE, Polygon(), LineString([(0, 0), (1, 1)])])
    def test_rejected(self, geometry):
        with pytest.raises(GeometryError):
            validate_region(Region("bad", "Bad", geometry))


class TestRegionsFromGeoDataFrame:

    def test_fields(self, forests):
        regions = regions_from_geodataframe(forests, id_field='OBJECTID', name_field='NAME')
        assert [r.region_id for r in regions] == ['11', '12', '13']
        assert regions[1].name == 'Bitterroot'
        assert regions[2].attributes['STATE'] == 'Oregon'
        assert regions[0].area_m2 == pytest.approx(100.0)

    def test_filter(self, forests):
        regions = regions_from_geodataframe(forests, 'OBJECTID', 'NAME', 'STATE', ['Montana'])
        assert [r.name for r in regions] == ['Lolo', 'Bitterroot']

    def test_index_fallback(self, forests):
        regions = regions_from_geodataframe(forests)
        assert [r.region_id for r in regions] == ['0', '1', '2']
        assert regions[0].name == '0'

    def test_missing_fields(self, forests):
        with pytest.raises(KeyError):
            regions_from_geodataframe(forests, id_field='FOREST_ID')
        with pytest.raises(KeyError):
            regions_from_geodataframe(forests, filter_field='REGION', filter_values=['x'])


class TestLoadRegions:

    def test_from_file(self, tmp_path, forests):
        path = tmp_path / "forests.gpkg"
        forests.set_crs("EPSG:5070").to_file(path, driver="GPKG")
        regions = load_regions(path, 'OBJECTID', 'NAME', 'STATE', ['Oregon'])
        assert len(regions) == 1
        assert regions[0].name == 'Deschutes'

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_regions(tmp_path / "nope.gpkg")
