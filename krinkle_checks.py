import numpy as np
from collections import defaultdict
from matplotlib.path import Path
from scipy.spatial import cKDTree

from krinkle_tiler import CLOSURE_TOLERANCE

INSET_FRACTION = 1e-3

def polygon_area(path):
    path = np.asarray(path)
    return 0.5 * np.sum(path[:, 0] * np.roll(path[:, 1], -1) - np.roll(path[:, 0], -1) * path[:, 1])

def centroid(path): return np.asarray(path).mean(axis=0)

def interior_point(path, fraction=INSET_FRACTION):
    """
    A point just inside the polygon, next to the midpoint of its first
    non-degenerate edge. The inward side follows from the orientation.
    """
    path = np.asarray(path)
    sign = 1.0 if polygon_area(path) > 0 else -1.0
    for i in range(len(path)):
        edge = path[(i + 1) % len(path)] - path[i]
        length = np.hypot(*edge)
        if length < 1e-12: continue
        normal = sign * np.array([-edge[1], edge[0]]) / length
        return (path[i] + path[(i + 1) % len(path)]) / 2 + fraction * length * normal
    return path[0]

def check_closure(polygon, tol=CLOSURE_TOLERANCE):
    return polygon['meta'].get('closure_error', 0.0) < tol

def find_overlaps(polygons):
    """Pairs (i, j), i < j, of polygons whose interiors overlap."""
    if len(polygons) < 2: return []
    paths = [np.asarray(p['path']) for p in polygons]
    centers = np.array([centroid(p) for p in paths])
    radius = 2 * max(np.max(np.hypot(*(p - c).T)) for p, c in zip(paths, centers))
    mpl_paths = [Path(p) for p in paths]
    probes = [interior_point(p) for p in paths]
    overlaps = set()
    for i, j in cKDTree(centers).query_pairs(radius):
        if mpl_paths[j].contains_point(probes[i]) or mpl_paths[i].contains_point(probes[j]):
            overlaps.add((min(i, j), max(i, j)))
    return sorted(overlaps)

def wedge_groups(polygons):
    groups = defaultdict(list)
    for p in polygons: groups[p['meta'].get('wedge_index')].append(p)
    return dict(groups)
