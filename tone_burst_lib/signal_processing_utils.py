import numpy as np


def linear_to_db(linear_amp: float, min_db: float = -np.inf) -> float:
    """Converts linear amplitude to dB, returning min_db for non-positive input."""
    if linear_amp <= 0:
        return min_db
    return float(20 * np.log10(linear_amp))


def ratio_to_db(numerator: float, denominator: float) -> float:
    """20*log10(numerator/denominator), with the limits for zero magnitudes."""
    if denominator <= 0:
        return np.inf if numerator > 0 else np.nan
    return linear_to_db(numerator / denominator)


def correlation_kernel(phase_factor: float, indices: np.ndarray) -> np.ndarray:
    """Complex exponential e^(i*phase_factor*j) evaluated at the given sample indices."""
    return np.exp(1j * phase_factor * np.asarray(indices, dtype=float))
