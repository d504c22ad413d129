"""Uniform station placement around the access point."""

from __future__ import annotations

import numpy as np

from .configurator import PlacementRegion


def create_generator(seed: int | None = None) -> np.random.Generator:
    """Return a Generator backed by MT19937 for reproducible placements."""

    return np.random.Generator(np.random.MT19937(seed))


def sample_station_positions(
    region: PlacementRegion,
    count: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """Draw ``count`` positions uniformly in ``region`` (z = 0).

    X and Y are independent; no minimum separation is enforced, so two
    stations may share a position.
    """

    if count < 0:
        raise ValueError("count must be >= 0")
    low, high = region.bounds
    positions = np.zeros((count, 3), dtype=float)
    if count:
        positions[:, 0] = rng.uniform(low, high, size=count)
        positions[:, 1] = rng.uniform(low, high, size=count)
    return positions


def distances_to_ap(positions: np.ndarray, region: PlacementRegion) -> np.ndarray:
    """Euclidean distance from each station to the AP antenna."""

    ap = np.asarray(region.ap_position, dtype=float)
    if positions.size == 0:
        return np.zeros(0, dtype=float)
    return np.linalg.norm(positions - ap, axis=1)
