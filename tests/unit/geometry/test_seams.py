"""
Tests for seam placement on closed contours.
"""

import numpy as np
import pytest

from layerpath.core.exceptions import InvalidGeometryError
from layerpath.geometry.seams import align_seams, seam_at_closest_point, seam_at_length


@pytest.mark.unit
class TestSeamAtLength:
    """Tests for seam_at_length."""

    def test_seam_between_vertices(self, square_contour):
        """Test that a vertex is inserted at the seam."""
        contour = seam_at_length(square_contour, 0.125)
        np.testing.assert_allclose(contour.start, [5.0, 0.0, 0.0])
        assert contour.point_count == 5
        assert contour.length == pytest.approx(40.0)

    def test_seam_on_vertex(self, square_contour):
        """Test that an existing vertex is reused."""
        contour = seam_at_length(square_contour, 0.25)
        np.testing.assert_allclose(contour.start, [10.0, 0.0, 0.0])
        assert contour.point_count == 4

    def test_seam_absolute_length(self, square_contour):
        """Test an absolute (non-normalized) seam position."""
        contour = seam_at_length(square_contour, 25.0, normalized=False)
        np.testing.assert_allclose(contour.start, [5.0, 10.0, 0.0])

    def test_seam_full_length_wraps(self, square_contour):
        """Test that the end of the loop is the original start."""
        contour = seam_at_length(square_contour, 1.0)
        np.testing.assert_allclose(contour.start, square_contour.start)

    def test_out_of_range(self, square_contour):
        """Test that positions outside the contour are rejected."""
        with pytest.raises(InvalidGeometryError):
            seam_at_length(square_contour, 1.5)

    def test_open_contour_rejected(self, open_line):
        """Test that open contours have no seam."""
        with pytest.raises(InvalidGeometryError):
            seam_at_length(open_line, 0.5)


@pytest.mark.unit
class TestSeamAlignment:
    """Tests for closest-point seams and alignment."""

    def test_seam_at_closest_point(self, square_contour):
        """Test starting at the point nearest a target."""
        contour = seam_at_closest_point(square_contour, (10.0, 12.0, 0.0))
        np.testing.assert_allclose(contour.start, [10.0, 10.0, 0.0])

    def test_align_seams(self, square_contour):
        """Test that every layer starts near the previous start."""
        shifted = square_contour.rolled(2).translated(dz=1.0)
        aligned = align_seams([square_contour, shifted])
        np.testing.assert_allclose(aligned[0].start, [0.0, 0.0, 0.0])
        np.testing.assert_allclose(aligned[1].start, [0.0, 0.0, 1.0])

    def test_align_requires_closed(self, square_contour, open_line):
        """Test that open contours are rejected."""
        with pytest.raises(InvalidGeometryError):
            align_seams([square_contour, open_line])
