import numpy as np
import pytest

import gmmfit.em
from gmmfit import MixtureParameters, fit, DegenerateComponent, InvalidInput, NumericOverflow, probability


def log_likelihood(data, params):
    return np.sum(np.log(probability(data, params)))


def test_recovers_two_clusters(data, good_seed):
    result = fit(data, good_seed, max_iterations=100, progress_callback=None)

    assert result.stop_reason == 'converged'
    assert result.n_iterations <= 100
    assert np.allclose(result.params.mean, [1, 4], atol=0.2)
    assert np.allclose(result.params.weight, [0.3, 0.7], atol=0.05)
    assert np.sum(result.params.weight) == pytest.approx(1.0)


def test_log_likelihood_non_decreasing_and_weights_normalized(data, poor_seed):
    history = []

    def record(iteration, params, ll):
        history.append((iteration, params.copy(), ll))

    result = fit(data, poor_seed, progress_callback=record)

    assert [h[0] for h in history] == list(range(1, len(history) + 1))
    lls = [h[2] for h in history]
    assert all(b >= a for a, b in zip(lls, lls[1:]))
    for _, params, _ in history:
        assert np.sum(params.weight) == pytest.approx(1.0)

    assert result.log_likelihood >= log_likelihood(data, poor_seed)
    assert result.log_likelihood == pytest.approx(log_likelihood(data, result.params))


def test_does_not_modify_initial(data, good_seed):
    before = good_seed.copy()
    fit(data, good_seed, progress_callback=None)
    fit(data, good_seed, progress_callback=None)
    assert good_seed == before


def test_stops_at_max_iterations(data, poor_seed):
    result = fit(data, poor_seed, max_iterations=3, tol=0, progress_callback=None)
    assert result.n_iterations == 3
    assert result.stop_reason == 'max_iterations'


def test_zero_iterations_returns_seed(data, good_seed):
    result = fit(data, good_seed, max_iterations=0, progress_callback=None)
    assert result.n_iterations == 0
    assert result.params == good_seed
    assert result.log_likelihood == pytest.approx(log_likelihood(data, good_seed))


def test_regression_is_rolled_back(monkeypatch, data, poor_seed):
    values = iter([-100.0, -90.0, -95.0])
    monkeypatch.setattr(gmmfit.em.GaussianDensity, 'log_likelihood', lambda self, d: next(values))

    accepted = []
    result = fit(data, poor_seed, progress_callback=lambda i, p, ll: accepted.append(p.copy()))

    assert result.stop_reason == 'regression'
    assert result.n_iterations == 2
    assert result.log_likelihood == -90.0
    assert len(accepted) == 1
    assert result.params == accepted[0]


def test_batch_responsibilities(good_seed):
    # one iteration by hand: every component uses the responsibilities of the seed
    data = np.array([0.0, 0.5, 1.0, 3.0, 4.0, 6.0])
    seed = good_seed.copy()

    weighted = seed.weight * np.exp(- (data[:, None] - seed.mean) ** 2 / (2 * seed.variance)) / np.sqrt(2 * np.pi * seed.variance)
    resp = weighted / weighted.sum(axis=1)[:, None]
    n_k = resp.sum(axis=0)
    mean = (resp * data[:, None]).sum(axis=0) / n_k
    variance = (resp * (data[:, None] - mean) ** 2).sum(axis=0) / n_k

    result = fit(data, seed, max_iterations=1, tol=0, progress_callback=None)
    assert result.stop_reason == "max_iterations"

    assert np.allclose(result.params.mean, mean)
    assert np.allclose(result.params.variance, variance)
    assert np.allclose(result.params.weight, n_k / data.shape[0])


def test_variance_collapse_raises():
    data = np.full(50, 2.0)
    with pytest.raises(DegenerateComponent) as e:
        fit(data, MixtureParameters([2.0], [1.0], [1.0]), progress_callback=None)
    assert e.value.component == 0


def test_empty_component_raises(data):
    with pytest.raises(DegenerateComponent) as e:
        fit(data, MixtureParameters([2.0, 1000.0], [1.0, 1.0], [0.5, 0.5]), progress_callback=None)
    assert e.value.component == 1


def test_underflowing_density_raises():
    data = np.array([0.0, 0.1, 1e4])
    with pytest.raises(NumericOverflow):
        fit(data, MixtureParameters([0.0], [1.0], [1.0]), progress_callback=None)


def test_invalid_input(good_seed):
    with pytest.raises(InvalidInput):
        fit([], good_seed)
    with pytest.raises(InvalidInput):
        fit([1.0, 2.0], MixtureParameters([1, 4], [1, 4, 2], [0.3, 0.7]))
    with pytest.raises(InvalidInput):
        fit([1.0, 2.0], MixtureParameters([1, 4], [1, 0], [0.3, 0.7]))
