import numpy as np

from .density import GaussianDensity
from .errors import DegenerateComponent
from .model import FitResult, as_data
from .progress import logged_simple_progress

from logging import getLogger
logger = getLogger(__name__)

MAX_ITERATIONS = 100
TERMINATION_TOLERANCE = 1e-5


def fit(data, initial, max_iterations=MAX_ITERATIONS, tol=TERMINATION_TOLERANCE, progress_callback=logged_simple_progress):
    """Fit a univariate Gaussian mixture using the Expectation-Maximization (EM) algorithm.

    :param data: The samples to fit. Anything :func:`numpy.asarray` turns into a non-empty 1D array.
    :type data: numpy.ndarray

    :param initial: The seed parameters. They are copied and never modified.
    :type initial: :class:`gmmfit.model.MixtureParameters`

    :param max_iterations: The maximum number of EM iterations to compute for.
    :type max_iterations: int

    :param tol: Stop once the relative change in log-likelihood between two iterations falls below this value.
    :type tol: float

    :param progress_callback: A function to call with (iteration, params, log_likelihood) after every accepted iteration.
    :type progress_callback: function or None

    An iteration that lowers the log-likelihood is rolled back and ends the fit.

    :raises InvalidInput: for empty data or unusable seed parameters
    :raises DegenerateComponent: when a component loses all its weight or its variance during an M-step
    :raises NumericOverflow: when a density or the log-likelihood stops being finite

    :rtype: :class:`gmmfit.model.FitResult`
    """

    data = as_data(data)
    current = initial.copy().validate().normalize()

    n_data = data.shape[0]
    n_comp = current.n_components

    density = GaussianDensity(current)
    log_likelihood = density.log_likelihood(data)
    logger.debug("initial log-likelihood %.6e for %s" % (log_likelihood, current))

    stop_reason = 'max_iterations'
    iteration = 0
    while iteration < max_iterations:
        previous = current.copy()

        # E-step #######

        # responsibilities of every component, all taken from the parameters at the start of the iteration
        weighted = density.weighted_densities(data)
        total = density.total_density(data, weighted)
        resp = weighted / total[:, np.newaxis]

        # M-step #######
        for k in range(n_comp):
            _estimate_component(data, resp[:, k], current, k)

        current.weight /= n_data
        current.normalize()

        density.refresh()
        new_log_likelihood = density.log_likelihood(data)
        iteration += 1

        # Convergence check #######
        if new_log_likelihood < log_likelihood:
            logger.debug("iteration %d lowered the log-likelihood (%.6e < %.6e), rolled back" % (
                iteration, new_log_likelihood, log_likelihood))
            current = previous
            stop_reason = 'regression'
            break

        if log_likelihood != 0:
            change = abs((new_log_likelihood - log_likelihood) / log_likelihood)
        else:
            change = abs(new_log_likelihood - log_likelihood)
        log_likelihood = new_log_likelihood

        if progress_callback:
            progress_callback(iteration, current, log_likelihood)

        if change < tol:
            stop_reason = 'converged'
            break

    return FitResult(current, log_likelihood, iteration, stop_reason)


def _estimate_component(data, gamma, params, k):
    """Weighted maximum-likelihood update of component k, in place.

    The weight is left as the effective sample count N_k; the caller divides by
    the number of samples once every component is done.
    """

    n_k = np.sum(gamma)
    if not n_k > 0:
        raise DegenerateComponent(k, "effective sample weight collapsed to %r" % (n_k,))

    mean = np.sum(gamma * data) / n_k
    variance = np.sum(gamma * (data - mean) ** 2) / n_k

    if not np.isfinite(mean):
        raise DegenerateComponent(k, "mean is not finite")
    if not (np.isfinite(variance) and variance > 0):
        raise DegenerateComponent(k, "variance collapsed to %r" % (variance,))

    params.mean[k] = mean
    params.variance[k] = variance
    params.weight[k] = n_k
