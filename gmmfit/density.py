# coding=utf-8
import numpy as np

from .errors import DegenerateComponent, NumericOverflow


class GaussianDensity(object):
    """Gaussian component densities of a mixture, f_k(x) = A_k * exp(B_k * (x - mean_k)^2).

    A_k = 1 / sqrt(2 pi variance_k) and B_k = -1 / (2 variance_k) are cached and
    only recomputed by :meth:`refresh`, which the EM loop calls once per
    iteration after the variances change.

    :param params: The mixture the densities are evaluated for. It is referenced, not copied.
    :type params: :class:`gmmfit.model.MixtureParameters`
    """

    def __init__(self, params):
        self.params = params
        self.A = None
        self.B = None
        self.refresh()

    def refresh(self):
        variance = self.params.variance

        bad = np.flatnonzero(~(variance > 0))
        if bad.size:
            raise DegenerateComponent(int(bad[0]), "variance %r is not positive" % (variance[bad[0]],))

        self.A = 1 / np.sqrt(2 * np.pi * variance)
        self.B = -1 / (2 * variance)

    def density(self, x, k):
        """Density of component k at x (scalar or array)."""
        return self.A[k] * np.exp(self.B[k] * (x - self.params.mean[k]) ** 2)

    def weighted_densities(self, data):
        """Return an (N x K) array of weight_k * f_k(x_i)."""
        centered = data[:, np.newaxis] - self.params.mean[np.newaxis, :]
        weighted = self.params.weight[np.newaxis, :] * self.A[np.newaxis, :] * np.exp(self.B[np.newaxis, :] * centered ** 2)

        if not np.all(np.isfinite(weighted)):
            raise NumericOverflow("component density is not finite")

        return weighted

    def total_density(self, data, weighted=None):
        """Mixture density at every point, failing if any point underflows to zero.

        Pass the output of :meth:`weighted_densities` as weighted to avoid evaluating it twice.
        """
        if weighted is None:
            weighted = self.weighted_densities(data)
        total = np.sum(weighted, axis=1)

        if np.any(total <= 0):
            raise NumericOverflow("mixture density underflows to zero for %d of %d samples" % (
                np.count_nonzero(total <= 0), total.shape[0]))

        return total

    def log_likelihood(self, data):
        ll = float(np.sum(np.log(self.total_density(data))))

        if not np.isfinite(ll):
            raise NumericOverflow("log-likelihood is not finite: %r" % (ll,))

        return ll
