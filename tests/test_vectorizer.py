"""Tests for the vectorizer."""

import numpy as np
from affine import Affine
from rasterio.transform import from_origin
from shapely.geometry import LineString

from constraint_model.core.vectorizer import (
    NOT_TREATABLE, OUTSIDE_CANDIDATE, TREATABLE, classify_treatable, merge_tile_vectors, vectorize_treatable
)

TRANSFORM = from_origin(0, 30, 10, 10)


class TestClassifyTreatable:

    def test_three_states(self):
        candidate = np.array([[True, True, False]])
        treatable = np.array([[True, False, False]])
        classified = classify_treatable(candidate, treatable)
        assert classified.tolist() == [[TREATABLE, NOT_TREATABLE, OUTSIDE_CANDIDATE]]


class TestVectorizeTreatable:

    def test_diagonal_cells_stay_separate(self):
        """Cells touching only at a corner are separate polygons under 4-connectivity."""
        classified = np.full((3, 3), OUTSIDE_CANDIDATE, dtype='int16')
        classified[0, 0] = TREATABLE
        classified[1, 1] = TREATABLE
        gdf = vectorize_treatable(classified, TRANSFORM, "r1")
        assert len(gdf) == 2
        assert (gdf['treatable'] == TREATABLE).all()
        assert np.allclose(gdf.geometry.area, 100.0)

    def test_patches_and_attributes(self):
        classified = np.array([[1, 1, 0],
                               [1, 0, 0],
                               [-1, -1, -1]], dtype='int16')
        gdf = vectorize_treatable(classified, TRANSFORM, "r7", crs="EPSG:5070")
        assert sorted(gdf['treatable'].tolist()) == [0, 1]
        assert set(gdf['region_id']) == {"r7"}
        areas = dict(zip(gdf['treatable'], gdf.geometry.area))
        assert areas[1] == 300.0
        assert areas[0] == 300.0
        assert gdf.crs.to_epsg() == 5070

    def test_nothing_to_vectorize(self):
        classified = np.full((2, 2), OUTSIDE_CANDIDATE, dtype='int16')
        gdf = vectorize_treatable(classified, TRANSFORM, "r1")
        assert len(gdf) == 0
        assert list(gdf.columns) == ['region_id', 'treatable', 'geometry']


class TestMergeTileVectors:

    @staticmethod
    def _split(classified, col):
        """Vectorize the left and right column blocks of a raster separately."""
        left = vectorize_treatable(classified[:, :col], TRANSFORM, "r1")
        right = vectorize_treatable(classified[:, col:], TRANSFORM * Affine.translation(col, 0), "r1")
        seam = LineString([(col * 10, 0), (col * 10, 30)])
        return [left, right], [seam]

    def test_patch_cut_by_seam_is_joined(self):
        classified = np.array([[1, 1, 1, 1],
                               [0, 0, 0, 0],
                               [-1, -1, -1, -1]], dtype='int16')
        frames, seams = self._split(classified, 2)
        assert sum(len(f) for f in frames) == 4

        merged = merge_tile_vectors(frames, seams)
        whole = vectorize_treatable(classified, TRANSFORM, "r1")
        assert len(merged) == len(whole) == 2
        assert sorted(merged.geometry.area) == [400.0, 400.0]
        assert set(merged['region_id']) == {"r1"}

    def test_corner_across_seam_stays_separate(self):
        classified = np.array([[1, -1],
                               [-1, 1],
                               [-1, -1]], dtype='int16')
        frames, seams = self._split(classified, 1)
        merged = merge_tile_vectors(frames, seams)
        assert len(merged) == 2
        assert np.allclose(merged.geometry.area, 100.0)

    def test_without_seams(self):
        classified = np.array([[1, 0]], dtype='int16')
        frame = vectorize_treatable(classified, TRANSFORM, "r1")
        assert len(merge_tile_vectors([frame], [])) == 2

    def test_nothing_to_merge(self):
        merged = merge_tile_vectors([], [LineString([(0, 0), (0, 10)])], crs="EPSG:5070")
        assert len(merged) == 0
        assert list(merged.columns) == ['region_id', 'treatable', 'geometry']
