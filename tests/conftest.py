import matplotlib
matplotlib.use('Agg')

import pytest

from krinkle_tiler import KrinkleGenerator


@pytest.fixture
def generator():
    return KrinkleGenerator({'color_count': 3, 'verbose': False, 'wedges': []})
