import numpy as np
import pytest

from gmmfit import MixtureParameters, FitResult, fit, multiple_fits, NoValidFit, InvalidInput
import gmmfit.search
from gmmfit.search import Candidate, find_best_candidate


def _fitted(initial, final, ll):
    c = Candidate(initial)
    c.set_result(FitResult(final, ll, 5, 'converged'), None)
    return c


def test_get_more_candidates():
    c = _fitted(MixtureParameters([0, 6], [1, 1], [0.5, 0.5]),
                MixtureParameters([1, 4], [2, 1], [0.3, 0.7]), -10.0)

    more = c.get_more_candidates()

    assert len(more) == 6
    assert more[0].initial.mean.tolist() == pytest.approx([2.2, 4])
    assert more[1].initial.mean.tolist() == pytest.approx([-0.2, 4])
    assert more[2].initial.mean.tolist() == pytest.approx([1, 6.4])
    assert more[3].initial.mean.tolist() == pytest.approx([1, 1.6])
    assert more[4].initial.variance.tolist() == pytest.approx([4.8, 1])
    assert more[5].initial.variance.tolist() == pytest.approx([2 / 2.4, 1])

    for m in more:
        assert m.failed
        assert m.initial.weight.tolist() == [0.3, 0.7]
        changed = np.count_nonzero(m.initial.mean != c.final.mean) + np.count_nonzero(m.initial.variance != c.final.variance)
        assert changed == 1

    # candidates own their parameters
    more[0].initial.mean[1] = 100
    assert c.final.mean[1] == 4


def test_no_candidates_when_stable():
    params = MixtureParameters([1, 4], [2, 1], [0.3, 0.7])
    c = _fitted(params.copy(), params.copy(), -10.0)
    assert c.get_more_candidates() == []


def test_failed_candidate_has_no_offspring():
    c = Candidate(MixtureParameters([1], [1], [1]))
    c.set_result(None, "DegenerateComponent: boom")
    assert c.failed
    assert c.error == "DegenerateComponent: boom"
    assert c.get_more_candidates() == []


def test_find_best_candidate_skips_failures_and_keeps_first_on_ties():
    params = MixtureParameters([1], [1], [1])
    failed = Candidate(params)
    failed.set_result(None, "NumericOverflow: nan")
    a = _fitted(params, params, -20.0)
    b = _fitted(params, params, -10.0)
    c = _fitted(params, params, -10.0)

    assert find_best_candidate([failed, a, b, c]) is b
    assert find_best_candidate([failed]) is None
    assert find_best_candidate([]) is None


def test_poor_seed_reaches_well_seeded_fit(data, good_seed, poor_seed):
    tol = 1e-7
    direct = fit(data, good_seed, tol=tol, progress_callback=None)
    searched = multiple_fits(data, poor_seed, max_rounds=20, tol=tol, n_proc=2)

    assert searched.stop_reason in ('no_improvement', 'stable', 'max_rounds')
    assert 1 <= searched.n_iterations <= 20
    assert abs((searched.log_likelihood - direct.log_likelihood) / direct.log_likelihood) < 1e-3
    assert np.sum(searched.params.weight) == pytest.approx(1.0)
    assert np.allclose(np.sort(searched.params.mean), [1, 4], atol=0.3)


def test_search_never_worse_than_single_fit(small_data, poor_seed):
    single = fit(small_data, poor_seed, progress_callback=None)
    searched = multiple_fits(small_data, poor_seed, max_rounds=5, n_proc=1)

    assert searched.log_likelihood >= single.log_likelihood
    assert poor_seed == MixtureParameters([0, 6], [1, 1], [0.5, 0.5])


def test_single_round():
    data = np.array([0.0, 0.2, 0.4, 3.0, 3.3, 3.5])
    result = multiple_fits(data, MixtureParameters([0, 3], [1, 1], [0.5, 0.5]), max_rounds=1, n_proc=1)
    assert result.n_iterations == 1
    assert result.stop_reason == 'max_rounds'


def test_all_failed_raises():
    with pytest.raises(NoValidFit):
        multiple_fits(np.full(20, 2.0), MixtureParameters([2.0], [1.0], [1.0]), n_proc=1)


def _failing_after_first(fail_calls):
    """Wrap the real candidate fit so that the calls numbered in fail_calls fail"""
    real = gmmfit.search._fit_candidate
    calls = []

    def fit_candidate(data, initial, max_iterations, tol):
        n = len(calls)
        calls.append(n)
        if fail_calls(n):
            return (None, "DegenerateComponent: component 0: forced")
        return real(data, initial, max_iterations, tol)

    return fit_candidate, calls


def test_search_continues_past_failed_candidates(monkeypatch, caplog, small_data, poor_seed):
    fit_candidate, calls = _failing_after_first(lambda n: n in (1, 2))
    monkeypatch.setattr(gmmfit.search, '_fit_candidate', fit_candidate)
    caplog.set_level('WARNING', logger='gmmfit.search')

    first = fit(small_data, poor_seed, max_iterations=2, progress_callback=None)
    result = multiple_fits(small_data, poor_seed, max_rounds=3, max_iterations=2, n_proc=1)

    assert result.stop_reason != 'all_failed'
    assert result.n_iterations >= 2
    assert result.log_likelihood > first.log_likelihood
    assert len(calls) > 3
    assert "round 2: 2 of" in caplog.text


def test_search_keeps_last_good_result_when_a_round_fails(monkeypatch, small_data, poor_seed):
    fit_candidate, calls = _failing_after_first(lambda n: n > 0)
    monkeypatch.setattr(gmmfit.search, '_fit_candidate', fit_candidate)

    first = fit(small_data, poor_seed, progress_callback=None)
    result = multiple_fits(small_data, poor_seed, n_proc=1)

    assert result.stop_reason == 'all_failed'
    assert result.n_iterations == 1
    assert result.log_likelihood == first.log_likelihood
    assert result.params == first.params
    assert len(calls) > 1


def test_search_improvement_from_zero_log_likelihood(monkeypatch):
    # round 1 scores exactly 0, rounds 2 and 3 score 0.5
    scores = [0.0, 0.5, 0.5, 0.5, 0.5]

    def fit_candidate(data, initial, max_iterations, tol):
        final = initial.copy()
        final.mean += 1
        return (FitResult(final, scores.pop(0), 1, 'converged'), None)

    monkeypatch.setattr(gmmfit.search, '_fit_candidate', fit_candidate)
    result = multiple_fits([0.0, 1.0], MixtureParameters([0], [1], [1]), n_proc=1)

    assert result.log_likelihood == 0.5
    assert result.n_iterations == 2
    assert result.stop_reason == 'no_improvement'


@pytest.mark.parametrize('max_rounds', [0, -1])
def test_search_needs_a_round(max_rounds, small_data, poor_seed):
    with pytest.raises(InvalidInput):
        multiple_fits(small_data, poor_seed, max_rounds=max_rounds, n_proc=1)
