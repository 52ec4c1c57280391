import math

import numpy as np
import pytest

from tone_burst_lib.signal_processing_utils import correlation_kernel, linear_to_db, ratio_to_db


def test_linear_to_db():
    assert linear_to_db(1.0) == 0.0
    assert linear_to_db(0.1) == pytest.approx(-20.0)
    assert linear_to_db(0.0) == -math.inf
    assert linear_to_db(0.0, min_db=-120.0) == -120.0


def test_ratio_to_db_limits():
    assert ratio_to_db(2.0, 1.0) == pytest.approx(6.0206, abs=1e-4)
    assert ratio_to_db(0.0, 1.0) == -math.inf
    assert ratio_to_db(1.0, 0.0) == math.inf
    assert math.isnan(ratio_to_db(0.0, 0.0))


def test_correlation_kernel_is_unit_phasor():
    kernel = correlation_kernel(0.25, np.arange(8))
    assert np.allclose(np.abs(kernel), 1.0)
    assert kernel[4] == pytest.approx(np.exp(1j))
