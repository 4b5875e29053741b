import multiprocessing as mp

import numpy as np

from .em import fit, MAX_ITERATIONS, TERMINATION_TOLERANCE
from .errors import DegenerateComponent, InvalidInput, NoValidFit, NumericOverflow
from .model import FitResult, as_data

from logging import getLogger
logger = getLogger(__name__)

MAX_ROUNDS = 100
STEP_FACTOR = 1.2


class Candidate(object):
    """One seed of the multi-start search, together with the fit it led to."""

    def __init__(self, initial):
        self.initial = initial
        self.final = None
        self.log_likelihood = -np.inf
        self.error = None

    @property
    def failed(self):
        return self.final is None

    def set_result(self, result, error):
        if result is None:
            self.final = None
            self.log_likelihood = -np.inf
            self.error = error
        else:
            self.final = result.params
            self.log_likelihood = result.log_likelihood
            self.error = None

    def new_with_final(self):
        return Candidate(self.final.copy())

    def get_more_candidates(self, step_factor=STEP_FACTOR):
        """Generate the next candidates by comparing the initial and final parameters.

        Every mean that moved is shifted once more by +/- step_factor times its
        move; every variance that changed is multiplied and divided by
        step_factor times its ratio. Each new candidate starts from the final
        parameters with exactly one value perturbed.
        """
        candidates = []
        if self.failed:
            return candidates

        if self.final.mean.shape == self.initial.mean.shape:
            for i in range(self.final.n_components):
                delta = abs(self.final.mean[i] - self.initial.mean[i]) * step_factor

                if delta > 0:
                    c = self.new_with_final()
                    c.initial.mean[i] += delta
                    candidates.append(c)

                    c = self.new_with_final()
                    c.initial.mean[i] -= delta
                    candidates.append(c)

        if self.final.variance.shape == self.initial.variance.shape:
            for i in range(self.final.n_components):
                if self.final.variance[i] != self.initial.variance[i]:
                    ratio = abs(self.final.variance[i] / self.initial.variance[i]) * step_factor

                    c = self.new_with_final()
                    c.initial.variance[i] *= ratio
                    candidates.append(c)

                    c = self.new_with_final()
                    c.initial.variance[i] /= ratio
                    candidates.append(c)

        return candidates


def find_best_candidate(candidates):
    """Return the valid candidate with the highest log-likelihood, first one on ties, or None"""
    best = None
    for c in candidates:
        if c.failed:
            continue
        if best is None or c.log_likelihood > best.log_likelihood:
            best = c
    return best


def _fit_candidate(data, initial, max_iterations, tol):
    # runs in a worker process; failures are returned, not raised
    try:
        return (fit(data, initial, max_iterations=max_iterations, tol=tol, progress_callback=None), None)
    except (DegenerateComponent, NumericOverflow) as e:
        logger.warning("candidate fit failed: %s" % e)
        return (None, "%s: %s" % (type(e).__name__, e))


def _fit_candidates(pool, data, candidates, max_iterations, tol):
    if pool is None or len(candidates) == 1:
        outcomes = [_fit_candidate(data, c.initial, max_iterations, tol) for c in candidates]
    else:
        pool_res = [pool.apply_async(_fit_candidate, args=(data, c.initial, max_iterations, tol)) for c in candidates]
        outcomes = [r.get() for r in pool_res]

    for c, (result, error) in zip(candidates, outcomes):
        c.set_result(result, error)


def multiple_fits(data, initial, max_rounds=MAX_ROUNDS, tol=TERMINATION_TOLERANCE, max_iterations=MAX_ITERATIONS, n_proc=None):
    """Fit a Gaussian mixture by greedy hill-climbing over EM local optima.

    Round one fits the initial guess. Every following round fits, in parallel,
    the candidates derived from the previous winner (see
    :meth:`Candidate.get_more_candidates`) and keeps the best one. The search
    stops when a round brings no relative improvement of at least tol, when no
    new candidates can be derived, when every candidate of a round failed, or
    after max_rounds.

    :param data: The samples to fit.
    :param initial: Seed parameters, never modified.
    :type initial: :class:`gmmfit.model.MixtureParameters`
    :param max_rounds: The maximum number of rounds.
    :param tol: Relative log-likelihood tolerance, used by the rounds and by every EM fit.
    :param max_iterations: The maximum number of iterations of every EM fit.
    :param n_proc: Number of worker processes. None uses every CPU, 1 fits in this process.

    :raises InvalidInput: for unusable data, seed parameters or max_rounds < 1
    :raises NoValidFit: when no candidate ever produced a valid fit

    :rtype: :class:`gmmfit.model.FitResult` whose n_iterations counts rounds
    """

    data = as_data(data)
    initial = initial.copy().validate()
    if max_rounds < 1:
        raise InvalidInput("max_rounds must be at least 1, got %r" % (max_rounds,))

    if n_proc is None:
        n_proc = mp.cpu_count()

    best = None
    stop_reason = 'max_rounds'
    candidates = [Candidate(initial)]

    pool = mp.Pool(processes=n_proc) if n_proc > 1 else None
    try:
        for round_n in range(1, max_rounds + 1):
            logger.info("round %d: fitting %d candidate(s)" % (round_n, len(candidates)))
            _fit_candidates(pool, data, candidates, max_iterations, tol)

            n_failed = sum(1 for c in candidates if c.failed)
            if n_failed:
                logger.warning("round %d: %d of %d candidate(s) failed" % (round_n, n_failed, len(candidates)))

            winner = find_best_candidate(candidates)
            if winner is None:
                stop_reason = 'all_failed'
                break

            # exit if the log likelihood is not improving
            if best is not None:
                change = winner.log_likelihood - best.log_likelihood
                if best.log_likelihood != 0:
                    change /= abs(best.log_likelihood)
                if not change > 0 or change < tol:
                    stop_reason = 'no_improvement'
                    break

            best = FitResult(winner.final.copy(), winner.log_likelihood, round_n, None)
            logger.info("round %d: log-likelihood = %.6e, %s" % (round_n, best.log_likelihood, best.params))

            candidates = winner.get_more_candidates()
            if not candidates:
                stop_reason = 'stable'
                break
    finally:
        if pool is not None:
            pool.close()
            pool.join()

    if best is None:
        raise NoValidFit("no candidate produced a valid fit (%s)" % "; ".join(c.error for c in candidates if c.error))

    logger.info("search finished after %d round(s): %s" % (best.n_iterations, stop_reason))

    return best._replace(stop_reason=stop_reason)
