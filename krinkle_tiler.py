import numpy as np
import math
import copy
import json
import colorsys
import warnings

UNIT_LENGTH = 100.0
CLOSURE_TOLERANCE = 1e-6 * UNIT_LENGTH
REFLECTED_WEDGE_OFFSET = 10000
PROTOTILE_COLOR, PROTOTILE_STROKE = (88 / 255, 166 / 255, 1.0, 0.4), '#58a6ff'
TILE_STROKE = '#888'

DEFAULT_CONFIG = {
    'color_count': 3,
    'palette_type': 'color',
    'verbose': True,
    'wedges': [{
        'params': {'c': 3, 'm': 3, 'k': 7, 'n': 14},
        0: {'reverse': False, 'start_color': 0}, 1: {'reverse': True, 'start_color': 1},
        2: {'reverse': False, 'start_color': 2}, 3: {'reverse': True, 'start_color': 1},
        4: {'reverse': False, 'start_color': 0}, 5: {'reverse': True, 'start_color': 2},
        6: {'reverse': False, 'start_color': 0}, 7: {'reverse': True, 'start_color': 2},
        8: {'reverse': False, 'start_color': 1}, 9: {'reverse': True, 'start_color': 0},
        10: {'reverse': False, 'start_color': 1}, 11: {'reverse': True, 'start_color': 2},
        12: {'reverse': False, 'start_color': 0}, 13: {'reverse': True, 'start_color': 2},
    }],
}

class KrinkleWarning(UserWarning):
    pass

# --- Parameters ---
def derive_n(k, m, t, is_offset=False):
    return 2 * (t * k - m) if is_offset else k * t

def normalize_params(m, k):
    """Push k above m and then up to the next value coprime with m."""
    if k <= m: k = m + 1
    while math.gcd(m, k) != 1: k += 1
    return m, k

def load_color_config(path):
    with open(path) as f: config = json.load(f)
    for item in config.get('wedges', []):
        for key in [key for key in item if key != 'params' and key.lstrip('-').isdigit()]:
            item[int(key)] = item.pop(key)
    return config

# --- Boundary sequences ---
def boundary_sequences(m, k):
    """
    Lower and upper boundary direction sequences of the prototile.
      L = [(j*m) % k for j in 0..k-1] + [k]
      U = [k] + [(j*m) % k for j in 1..k-1] + [0]
    Both stop early when an interior term hits 0 (short period).
    """
    has_short_period = False
    lower = []
    for j in range(k):
        if j > 0 and (j * m) % k == 0: has_short_period = True; break
        lower.append((j * m) % k)
    lower.append(k)
    upper = [k]
    for j in range(1, k):
        if (j * m) % k == 0: has_short_period = True; break
        upper.append((j * m) % k)
    upper.append(0)
    return lower, upper, has_short_period

def direction_vectors(directions, n, length=UNIT_LENGTH):
    angles = np.asarray(directions, dtype=float) * 2 * np.pi / n
    return length * np.column_stack([np.cos(angles), np.sin(angles)])

def direction_vector(d, n, length=UNIT_LENGTH): return direction_vectors([d], n, length)[0]

def rotation_matrix(angle):
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s], [s, c]])

# --- Coloring ---
def generate_palette(count, palette_type='color'):
    palette = []
    for i in range(count):
        if palette_type == 'gray':
            step = (80 - 25) / (count - 1) if count > 1 else 0
            lightness = math.floor(25 + step * i) / 100
            palette.append((lightness, lightness, lightness, 0.6))
        else:
            hue = math.floor((360 / count) * i) / 360
            palette.append(colorsys.hls_to_rgb(hue, 0.6, 0.7) + (0.6,))
    return palette

def _wedge_rule(color_config, params, wedge_index):
    m, k, n = params
    for item in color_config.get('wedges', []):
        p = item.get('params')
        if p and p.get('c') == color_config['color_count'] and (p.get('m'), p.get('k'), p.get('n')) == (m, k, n):
            return item.get(wedge_index, item.get(str(wedge_index), {}))
    return {}

def get_color_index(r, c, wedge_index, color_config, params=None):
    count = color_config['color_count']
    if not params or not all(params): return wedge_index % count
    rule = _wedge_rule(color_config, params, wedge_index)
    reverse = rule.get('reverse', wedge_index % 2 != 0)
    start_color = rule.get('start_color', wedge_index % count)
    base = (count - ((r + c) % count)) % count if reverse else (r + c) % count
    return (base + start_color) % count

# --- Generator ---
class KrinkleGenerator:
    def __init__(self, config=None):
        self.config = copy.deepcopy(config if config is not None else DEFAULT_CONFIG)
        self.color_count = self.config.get('color_count', 3)
        if self.color_count < 1: raise ValueError(f"color_count must be positive, but got {self.color_count}")
        self.palette_type = self.config.get('palette_type', 'color')
        self.verbose = self.config.get('verbose', True)
        self.palette, self.current_params = [], None
        self.warnings, self.error, self.has_short_period = [], None, False

    def _log(self, msg):
        if self.verbose: print(msg)

    def _warn(self, msg):
        self.warnings.append(msg); warnings.warn(msg, KrinkleWarning, stacklevel=3)

    def _begin_pass(self, m, k, n):
        self.current_params = (m, k, n)
        self.warnings, self.error, self.has_short_period = [], None, False
        self.palette = generate_palette(self.color_count, self.palette_type)

    def color_index(self, r, c, wedge_index):
        return get_color_index(r, c, wedge_index, self.config, self.current_params)

    def _prototile(self, m, k, n):
        self._log(f"Generating Prototile with m = {m}, k = {k}, n = {n}")
        if n < k:
            self.error = f"Parameter Error: n must be >= k (n = {n}, k = {k})"
            print(self.error); return []
        lower, upper, has_short_period = boundary_sequences(m, k)
        if has_short_period:
            self.has_short_period = True
            self._warn(f"Short period for m = {m}, k = {k}: boundary sequences truncated, prototile may self-overlap")
        # forward along the lower boundary, then back along the reversed upper boundary
        steps = np.vstack([direction_vectors(lower, n), -direction_vectors(upper[::-1], n)])
        path = np.vstack([np.zeros((1, 2)), np.cumsum(steps, axis=0)])
        closure_error = float(np.hypot(*path[-1]))
        closure_ok = closure_error < CLOSURE_TOLERANCE
        if not closure_ok: self._warn(f"Prototile does not close: closure error {closure_error:.3g}")
        self._log(f"Prototile generated. Closure Error: {closure_error:.4f}")
        return [{'path': path, 'color': PROTOTILE_COLOR, 'stroke': PROTOTILE_STROKE,
                 'meta': {'closure_error': closure_error, 'closure_ok': closure_ok, 'has_short_period': has_short_period}}]

    def _wedge(self, m, k, n, rows):
        self._log(f"Generating Wedge with m = {m}, k = {k}, n = {n}, rows = {rows}")
        base = self._prototile(m, k, n)
        if not base: return []
        base_path = base[0]['path']
        lower, _, _ = boundary_sequences(m, k)
        d0 = direction_vectors(lower[:-1], n).sum(axis=0)
        d1 = direction_vector(k, n) - direction_vector(0, n)
        tiles, tile_index = [], 0
        for r in range(rows):
            for c in range(r + 1):
                tiles.append({'path': base_path + (r * d0 + c * d1), 'color': self.palette[self.color_index(r, c, 0)],
                              'stroke': TILE_STROKE, 'meta': {'wedge_index': 0, 'tile_index': tile_index, 'r': r, 'c': c}})
                tile_index += 1
        return tiles

    def _place_wedge(self, base_wedge, offset, rotation_index, n):
        R = rotation_matrix(rotation_index * 2 * np.pi / n)
        placed = []
        for p in base_wedge:
            r, c = p['meta'].get('r', 0), p['meta'].get('c', 0)
            placed.append({'path': p['path'] @ R.T + offset, 'color': self.palette[self.color_index(r, c, rotation_index)],
                           'stroke': p['stroke'], 'meta': dict(p['meta'], wedge_index=rotation_index)})
        return placed

    def _tiling(self, m, k, n, rows, is_offset):
        w_limit = math.ceil(n / 2) if is_offset else n
        self._log(f"Generating Tiling with m = {m}, k = {k}, n = {n}, is_offset = {is_offset}, w_limit = {w_limit}")
        base_wedge = self._wedge(m, k, n, rows)
        if not base_wedge: return []
        _, upper, _ = boundary_sequences(m, k)
        front = upper[:-1]
        polygons = self._place_wedge(base_wedge, np.zeros(2), 0, n)
        for i in range(1, w_limit):
            j_star = next((j for j, d in enumerate(front) if d == i), None)
            if j_star is None:
                self._warn(f"Direction {i} not found in front {front}; wedge {i} skipped"); continue
            offset = direction_vectors(front[:j_star], n).sum(axis=0)
            polygons.extend(self._place_wedge(base_wedge, offset, i, n))
            front[j_star] = i + k
        if is_offset:
            pivot = direction_vector(0, n) / 2
            self._log(f"Offset Mode: reflecting {len(polygons)} polygons through pivot ({pivot[0]:.2f}, {pivot[1]:.2f})")
            polygons.extend([{'path': 2 * pivot - p['path'], 'color': p['color'], 'stroke': p['stroke'],
                              'meta': dict(p['meta'], is_copy=True, wedge_index=p['meta']['wedge_index'] + REFLECTED_WEDGE_OFFSET)}
                             for p in polygons])
        self._log(f"Tiling generated: {len(polygons)} polygons, {len(self.warnings)} warnings")
        return polygons

    def generate_prototile(self, m, k, n):
        self._begin_pass(m, k, n); return self._prototile(m, k, n)

    def generate_wedge(self, m, k, n, rows):
        self._begin_pass(m, k, n); return self._wedge(m, k, n, rows)

    def generate_tiling(self, m, k, n, rows, is_offset=False):
        self._begin_pass(m, k, n); return self._tiling(m, k, n, rows, is_offset)

def generate_prototile(m, k, n, config=None): return KrinkleGenerator(config).generate_prototile(m, k, n)
def generate_wedge(m, k, n, rows, config=None): return KrinkleGenerator(config).generate_wedge(m, k, n, rows)
def generate_tiling(m, k, n, rows, is_offset=False, config=None): return KrinkleGenerator(config).generate_tiling(m, k, n, rows, is_offset)
