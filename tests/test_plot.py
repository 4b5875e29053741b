import os

import numpy as np

import gmmfit.plot
from gmmfit import Histogram, MixtureParameters, probability
from gmmfit.plot import plot_fit


def test_plot_fit(tmp_path, small_data):
    path = str(tmp_path / "fit.png")
    plot_fit(path, Histogram(small_data), MixtureParameters([1, 4], [1, 4], [0.3, 0.7]))
    assert os.path.getsize(path) > 0


def test_plot_fit_draws_mixture_density(tmp_path, monkeypatch, small_data):
    seen = []

    def spy(x, params):
        seen.append(x)
        return probability(x, params)

    monkeypatch.setattr(gmmfit.plot, 'probability', spy)
    h = Histogram(small_data)
    plot_fit(str(tmp_path / "fit.png"), h, MixtureParameters([1, 4], [1, 4], [0.3, 0.7]), n_points=50)

    assert len(seen) == 1
    assert seen[0].shape == (50,)
    assert np.isclose(seen[0][0], h.low) and np.isclose(seen[0][-1], h.high)
