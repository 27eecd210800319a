import argparse
import sys
import warnings
import numpy as np
import matplotlib.pyplot as plt

from krinkle_tiler import KrinkleGenerator, KrinkleWarning, DEFAULT_CONFIG, derive_n, normalize_params, load_color_config
from krinkle_checks import centroid, find_overlaps, wedge_groups

BACKGROUND = '#0d1117'
AXIS_COLOR = '#30363d'
WEDGE_HIGHLIGHT = (20 / 255, 140 / 255, 170 / 255, 0.4)
LAYER_HIGHLIGHT = (170 / 255, 170 / 255, 10 / 255, 0.4)

def tile_centers(polygons):
    return [(centroid(p['path']), str(p['meta']['tile_index'])) for p in polygons if 'tile_index' in p['meta']]

def wedge_centers(polygons):
    centers = {}
    for idx, group in wedge_groups(polygons).items():
        if idx is None: continue
        pts = np.vstack([p['path'] for p in group])
        min_xy, max_xy = pts.min(axis=0), pts.max(axis=0)
        centers[idx] = {'center': pts.mean(axis=0), 'width': max_xy[0] - min_xy[0], 'height': max_xy[1] - min_xy[1]}
    return centers

def fit_bounds(polygons, padding=50.0):
    pts = np.vstack([p['path'] for p in polygons])
    (min_x, min_y), (max_x, max_y) = pts.min(axis=0), pts.max(axis=0)
    cx, cy = (min_x + max_x) / 2, (min_y + max_y) / 2
    half_size = max(max_x - min_x, max_y - min_y) / 2 + padding
    return (cx - half_size, cx + half_size), (cy - half_size, cy + half_size)

class StaticVisualizer:
    def __init__(self, figsize=(10, 10)):
        self.fig, self.ax = plt.subplots(figsize=figsize)
        self.fig.patch.set_facecolor(BACKGROUND)
        self.show_edges, self.show_wedges, self.show_tiles = True, True, True
        self.show_fill, self.show_axis, self.show_lines = False, True, True
        self.highlight_wedge, self.highlight_layer = None, None

    def set_options(self, **options):
        for name, value in options.items():
            if not hasattr(self, name): raise AttributeError(f"Unknown visualizer option '{name}'")
            setattr(self, name, value)

    def draw(self, polygons, mode='prototile', title=None):
        ax = self.ax; ax.clear()
        ax.set_facecolor(BACKGROUND); ax.set_aspect('equal', adjustable='box'); ax.set_xticks([]); ax.set_yticks([])
        if not polygons:
            self.fig.canvas.draw_idle(); return
        if self.show_axis:
            ax.axhline(0, color=AXIS_COLOR, lw=1, zorder=0); ax.axvline(0, color=AXIS_COLOR, lw=1, zorder=0)
        for poly in polygons:
            ax.add_patch(plt.Polygon(poly['path'], closed=True, fc=poly['color'] if self.show_fill else BACKGROUND,
                                     ec=poly['stroke'] if self.show_lines else 'none', lw=1.5, zorder=1))
        if mode == 'prototile' and self.show_edges:
            for poly in polygons:
                path = poly['path']
                for i in range(len(path) - 1):
                    mid = (path[i] + path[i + 1]) / 2
                    ax.text(mid[0], mid[1], str(i), color='white', fontsize=9, ha='center', va='center', zorder=3)
        if mode == 'tiling':
            for field, key, color in (('wedge_index', self.highlight_wedge, WEDGE_HIGHLIGHT), ('r', self.highlight_layer, LAYER_HIGHLIGHT)):
                if key is None: continue
                for poly in polygons:
                    if poly['meta'].get(field) == key:
                        ax.add_patch(plt.Polygon(poly['path'], closed=True, fc=color, ec='none', zorder=2))
            if self.show_wedges:
                centers = wedge_centers(polygons)
                for i, key in enumerate(sorted(centers)):
                    center = centers[key]['center']
                    ax.text(center[0], center[1], str(i), color='#a3b3cc', fontsize=12, fontweight='bold', ha='center', va='center', zorder=3)
        if mode in ('wedge', 'tiling') and self.show_tiles:
            for center, label in tile_centers(polygons):
                ax.text(center[0], center[1], label, color='white', fontsize=7, fontweight='bold', ha='center', va='center', zorder=3)
        xlim, ylim = fit_bounds(polygons)
        ax.set_xlim(*xlim); ax.set_ylim(*ylim)
        if title: ax.set_title(title, color='#8b949e')
        self.fig.canvas.draw_idle()

    def save(self, filename, dpi=150):
        self.fig.savefig(filename, dpi=dpi, facecolor=self.fig.get_facecolor(), bbox_inches='tight')

    def close(self): plt.close(self.fig)

def parse_fill(fill):
    if fill in (None, 'none'): return None, None
    count, palette_type = fill.split('-')
    return int(count), palette_type

def main(argv=None):
    parser = argparse.ArgumentParser(description="Modulo Krinkle tiling generator")
    parser.add_argument("--m", type=int, default=3, help="Step m (default: 3)")
    parser.add_argument("--k", type=int, default=7, help="Modulus k (default: 7)")
    parser.add_argument("--t", type=int, default=2, help="Period coefficient t (default: 2)")
    parser.add_argument("--rows", type=int, default=5, help="Wedge depth (default: 5)")
    parser.add_argument("--mode", choices=['prototile', 'wedge', 'tiling'], default='tiling')
    parser.add_argument("--offset", action='store_true', help="Half-disc tiling completed by point reflection")
    parser.add_argument("--fill", default='none', help="Fill mode like '3-color' or '4-gray' (default: none)")
    parser.add_argument("--config", help="JSON colour configuration")
    parser.add_argument("--check", action='store_true', help="Report overlapping tiles")
    parser.add_argument("--out", help="Output image path (shows a window when omitted)")
    parser.add_argument("--dpi", type=int, default=150)
    args = parser.parse_args(argv)

    m, k = normalize_params(args.m, args.k)
    if k != args.k: print(f"Adjusted k from {args.k} to {k} so that m < k and gcd(m, k) = 1")
    n = derive_n(k, m, args.t, args.offset)
    if n < k:
        print(f"Error: n ({n}) must be >= k ({k})"); return 1

    config = load_color_config(args.config) if args.config else dict(DEFAULT_CONFIG)
    count, palette_type = parse_fill(args.fill)
    if count is not None: config['color_count'], config['palette_type'] = count, palette_type
    generator = KrinkleGenerator(config)
    with warnings.catch_warnings():
        warnings.simplefilter('ignore', KrinkleWarning)  # reported below from generator.warnings
        if args.mode == 'wedge': polygons = generator.generate_wedge(m, k, n, args.rows)
        elif args.mode == 'tiling': polygons = generator.generate_tiling(m, k, n, args.rows, args.offset)
        else: polygons = generator.generate_prototile(m, k, n)
    if generator.error:
        print(f"Error: {generator.error}"); return 1
    if generator.has_short_period: print("Warning: short period, the prototile is degenerate")
    for msg in generator.warnings: print(f"Warning: {msg}")
    if args.check:
        overlaps = find_overlaps(polygons)
        print(f"Overlap check: {len(overlaps)} overlapping pairs")

    vis = StaticVisualizer()
    vis.set_options(show_fill=count is not None)
    vis.draw(polygons, args.mode, title=f"(m, k, n) = ({m}, {k}, {n}) [{args.mode}]")
    if args.out:
        vis.save(args.out, dpi=args.dpi); print(f"Saved {len(polygons)} polygons to {args.out}")
    else: plt.show(block=True)
    vis.close()
    return 0

if __name__ == "__main__":
    sys.exit(main())
