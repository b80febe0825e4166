from __future__ import annotations

from typing import Any

import numpy as np

from .errors import ConfigError
from .models import BandPeaks

DEFAULT_BAND_EDGES = (20, 250, 4000)


class SpectralReducer:
    """Turns one window of samples into an RGB color.

    The window is transformed with a forward FFT and the magnitude of
    each bin forms the spectrum.  Only the first ``window_size // 2``
    bins are used.  Three bands are scanned for their peak magnitude:

    ========  ==========================  =======
    band      bins                        channel
    ========  ==========================  =======
    low       ``[e0, e1)``                red
    mid       ``[e1, e2)``                green
    high      ``[e2, window_size // 2)``  blue
    ========  ==========================  =======

    Bins below ``e0`` (DC and sub-audible) are ignored.  The peaks are
    normalized by the largest of the three, so every color is relative
    to its own window.
    """

    def __init__(self, band_edges: tuple[int, int, int] | list[int] = DEFAULT_BAND_EDGES):
        self._set_edges(band_edges)

    def configure(self, config: dict[str, Any]) -> None:
        self._set_edges(config.get("band_edges", DEFAULT_BAND_EDGES))

    def _set_edges(self, edges) -> None:
        low, mid, high = (int(e) for e in edges)
        if not 0 <= low < mid < high:
            raise ConfigError(f"Band edges must be increasing, got {list(edges)}")
        self.band_edges = (low, mid, high)

    def check_window_size(self, window_size: int) -> None:
        """Raise :class:`ConfigError` if the high band would be empty."""
        if window_size // 2 <= self.band_edges[2]:
            raise ConfigError(
                f"Window of {window_size} samples is too small for a high "
                f"band starting at bin {self.band_edges[2]}"
            )

    # ------------------------------------------------------------------

    def spectrum(self, window: np.ndarray) -> np.ndarray:
        """Magnitude of every FFT bin of *window* (length ``len(window)``)."""
        return np.abs(np.fft.fft(np.array(window, dtype=np.complex128)))

    def band_peaks(self, spectrum: np.ndarray) -> BandPeaks:
        half = spectrum.shape[0] // 2
        low, mid, high = self.band_edges
        if half <= high:
            raise ValueError(
                f"spectrum of {spectrum.shape[0]} bins has no bins above {high}"
            )
        amplitude = spectrum[:half]
        return BandPeaks(
            low=float(amplitude[low:mid].max()),
            mid=float(amplitude[mid:high].max()),
            high=float(amplitude[high:half].max()),
        )

    def colorize(self, peaks: BandPeaks) -> tuple[int, int, int]:
        scale = peaks.scale
        if not np.isfinite(scale) or scale <= 0.0:
            return (0, 0, 0)
        values = np.rint(np.array(peaks.as_tuple()) * 255.0 / scale)
        r, g, b = np.clip(values, 0, 255).astype(int)
        return (int(r), int(g), int(b))

    def reduce(self, window: np.ndarray) -> tuple[int, int, int]:
        return self.colorize(self.band_peaks(self.spectrum(window)))
