"""
===============================================================================
PANOVIEW - Sphere Partition and Field-of-View Visibility
===============================================================================

The unit sphere is cut into latitude rings and each ring into cells of
roughly equal solid angle. For a viewer orientation and a rectangular field
of view, the partition answers which cells are visible; it also answers which
cells fall inside a theta/phi window and keeps a usage counter per cell.

Partition
---------
For nb_v_pixels rings, ring j (j = 1, 3, ..., 2*nb_v_pixels - 1) is centred
at

    phi_j = j * pi / (2 * nb_v_pixels)

and holds n_j = ceil(nb_h_pixels * sin(phi_j)) cells, so rings shrink toward
the poles. Cell i of ring j is centred at theta_i = i * 2*pi / n_j - pi and
weighs

    surface = 2 * pi^2 * sin(phi_j) / (n_j * nb_v_pixels)

i.e. the ring's solid angle (midpoint rule) shared between its cells. Cell
ids follow construction order: ring by ring, theta ascending.

Visibility
----------
The field of view is a frustum bounded by four planes through the viewer.
A cell is visible when its centroid, expressed in the viewer frame, lies in
the four inner half-spaces.
===============================================================================
"""

import functools
import logging
import threading
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
import pandas as pd

from panoview.core.constants import PI
from panoview.core.frames import Coord3dSpherical, RotMat, norm, rotation
from panoview.core.vector import Vector


logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=64)
def fov_inward_normals(horizontal_fov: float,
                       vertical_fov: float) -> Tuple[Vector, Vector, Vector, Vector]:
    """
    Unit normals of the four planes bounding a rectangular field of view.

    The view rectangle sits at distance 1 along +X with corners (1, +-y, +-z),
    where y = sqrt(1 - cos(horizontal_fov)) and z = sqrt(1 - cos(vertical_fov)).
    Corners are walked top-left, top-right, bottom-right, bottom-left as seen
    from the viewer (+Y is left, +Z is up), so each cross product of
    consecutive corners points into the frustum.

    Returns
    -------
    tuple of Vector
        Unit normals of the top, right, bottom and left planes.
    """
    y = np.sqrt(1.0 - np.cos(horizontal_fov))
    z = np.sqrt(1.0 - np.cos(vertical_fov))
    a = Vector(1.0, y, z)
    b = Vector(1.0, -y, z)
    c = Vector(1.0, -y, -z)
    d = Vector(1.0, y, -z)

    normals = []
    for first, second in ((a, b), (b, c), (c, d), (d, a)):
        n = first ^ second
        normals.append(n / norm(n))
    return tuple(normals)


@dataclass(frozen=True)
class Area:
    """
    One cell of the sphere partition.

    Attributes:
        theta: Azimuth of the centroid, in [-pi, pi).
        phi: Polar angle of the centroid, in [0, pi].
        surface: Solid-angle weight of the cell (sr).
    """
    theta: float
    phi: float
    surface: float

    def direction(self) -> Vector:
        """Centroid as a unit vector."""
        return Vector.from_spherical(self.theta, self.phi)

    def intersection(self, rot_mat: RotMat, horizontal_fov: float,
                     vertical_fov: float) -> bool:
        """
        Whether the centroid lies inside the field of view.

        Parameters
        ----------
        rot_mat : RotMat
            Viewer orientation (viewer frame to world frame).
        horizontal_fov, vertical_fov : float
            Field-of-view angles (rad).

        Returns
        -------
        bool
            True when the centroid, brought into the viewer frame by
            rot_mat.inv(), has a non-negative dot product with all four
            inward normals.
        """
        normals = fov_inward_normals(float(horizontal_fov), float(vertical_fov))
        return self._inside(rot_mat.inv(), normals)

    def _inside(self, world_to_viewer: RotMat, normals: Tuple[Vector, ...]) -> bool:
        """Half-space test with the inverse orientation already computed."""
        local = rotation(Coord3dSpherical(1.0, self.theta, self.phi), world_to_viewer)
        position = local.to_cartesian()
        return all(position * n >= 0.0 for n in normals)


class AreaSet:
    """
    Fixed partition of the unit sphere with per-cell usage counters.

    The partition is immutable once built. Queries are read-only and may run
    from several threads at once; :meth:`add_use_as_qer` increments under a
    lock so concurrent increments are never lost.

    Parameters
    ----------
    nb_h_pixels : int
        Number of cells on the equator ring (upper bound for every ring).
    nb_v_pixels : int
        Number of latitude rings.

    Raises
    ------
    ValueError
        If either resolution is not a positive integer.
    """

    def __init__(self, nb_h_pixels: int, nb_v_pixels: int) -> None:
        for name, value in (("nb_h_pixels", nb_h_pixels), ("nb_v_pixels", nb_v_pixels)):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

        self.nb_h_pixels = int(nb_h_pixels)
        self.nb_v_pixels = int(nb_v_pixels)

        areas: List[Area] = []
        for j in range(1, 2 * self.nb_v_pixels, 2):
            ring_phi = j * PI / (2 * self.nb_v_pixels)
            sin_phi = np.sin(ring_phi)
            local_nb_h = int(np.ceil(self.nb_h_pixels * sin_phi))
            surface = float(2.0 * PI * PI * sin_phi / (local_nb_h * self.nb_v_pixels))
            for i in range(local_nb_h):
                areas.append(Area(float(i * 2.0 * PI / local_nb_h - PI),
                                  float(ring_phi), surface))
            logger.debug("Ring phi=%.4f rad: %d cells of %.5f sr",
                         ring_phi, local_nb_h, surface)

        self._areas: Tuple[Area, ...] = tuple(areas)
        self._generated_as_qer_counter = np.zeros(len(areas), dtype=np.int64)
        self._counter_lock = threading.Lock()

        logger.info("Built sphere partition %dx%d: %d rings, %d cells",
                    self.nb_h_pixels, self.nb_v_pixels, self.nb_v_pixels, len(areas))

    @classmethod
    def from_config(cls, config) -> 'AreaSet':
        """Build the partition described by a :class:`~panoview.config.ViewportConfig`."""
        return cls(config.nb_h_pixels, config.nb_v_pixels)

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    @property
    def areas(self) -> Tuple[Area, ...]:
        """Cells in id order."""
        return self._areas

    @property
    def generated_as_qer_counter(self) -> np.ndarray:
        """Copy of the usage counters, indexed by cell id."""
        with self._counter_lock:
            return self._generated_as_qer_counter.copy()

    def __len__(self) -> int:
        return len(self._areas)

    def total_surface(self) -> float:
        """Sum of the cell weights; approaches 4*pi as the resolution grows."""
        return float(sum(area.surface for area in self._areas))

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_visibility(self, rot_mat: RotMat, horizontal_fov: float,
                       vertical_fov: float) -> List[bool]:
        """Visibility of every cell, in id order (see :meth:`Area.intersection`)."""
        world_to_viewer = rot_mat.inv()
        normals = fov_inward_normals(float(horizontal_fov), float(vertical_fov))
        return [area._inside(world_to_viewer, normals) for area in self._areas]

    def get_visible_area_ids(self, rot_mat: RotMat, horizontal_fov: float,
                             vertical_fov: float) -> List[int]:
        """Ids of the visible cells, ascending."""
        visibility = self.get_visibility(rot_mat, horizontal_fov, vertical_fov)
        return [area_id for area_id, visible in enumerate(visibility) if visible]

    def visible_surface(self, rot_mat: RotMat, horizontal_fov: float,
                        vertical_fov: float) -> float:
        """Summed weight of the visible cells (sr)."""
        visibility = self.get_visibility(rot_mat, horizontal_fov, vertical_fov)
        return float(sum(area.surface
                         for area, visible in zip(self._areas, visibility) if visible))

    def get_area_id_in_tile(self, start_theta: float, end_theta: float,
                            start_phi: float, end_phi: float) -> List[int]:
        """
        Ids of the cells whose centroid lies in a theta/phi window.

        Both ranges are half-open: start <= value < end. The result is in id
        order (ring by ring, theta ascending).
        """
        return [area_id for area_id, area in enumerate(self._areas)
                if start_theta <= area.theta < end_theta
                and start_phi <= area.phi < end_phi]

    # =========================================================================
    # USAGE COUNTERS
    # =========================================================================

    def add_use_as_qer(self, area_id: int) -> None:
        """
        Count one more use of cell *area_id*.

        Raises
        ------
        TypeError
            If *area_id* is not an integer (bools are rejected).
        IndexError
            If *area_id* is not a valid cell id.
        """
        if isinstance(area_id, bool) or not isinstance(area_id, (int, np.integer)):
            raise TypeError(f"Area id must be an integer, got {area_id!r}")
        if not 0 <= area_id < len(self._areas):
            raise IndexError(
                f"Area id {area_id} out of range for {len(self._areas)} cells"
            )
        with self._counter_lock:
            self._generated_as_qer_counter[area_id] += 1

    def to_dataframe(self) -> pd.DataFrame:
        """
        Per-cell table for usage statistics.

        Returns
        -------
        pd.DataFrame
            Indexed by ``area_id``; columns theta, phi, surface,
            generated_as_qer.
        """
        counters = self.generated_as_qer_counter
        frame = pd.DataFrame({
            "theta": [area.theta for area in self._areas],
            "phi": [area.phi for area in self._areas],
            "surface": [area.surface for area in self._areas],
            "generated_as_qer": counters,
        })
        frame.index.name = "area_id"
        return frame

    def __repr__(self) -> str:
        return (f"AreaSet(nb_h_pixels={self.nb_h_pixels}, "
                f"nb_v_pixels={self.nb_v_pixels}, cells={len(self._areas)})")
