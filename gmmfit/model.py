# coding=utf-8
import collections

import numpy as np

from .errors import InvalidInput


FitResult = collections.namedtuple('FitResult', ['params', 'log_likelihood', 'n_iterations', 'stop_reason'])
FitResult.__doc__ = """Outcome of a fit: final parameters, total log-likelihood, iteration (or round) count and why it stopped."""


def as_data(data):
    """Convert data to a 1-D float64 array, rejecting empty or non-finite input."""
    data = np.asarray(data, dtype=float)

    if data.ndim != 1:
        raise InvalidInput("Expect 1D data, got shape %s" % (data.shape,))
    if data.shape[0] == 0:
        raise InvalidInput("Data is empty")
    if not np.all(np.isfinite(data)):
        raise InvalidInput("Data contains NaN or infinite values")

    return data


class MixtureParameters(object):
    """Per-component mean, variance and weight of a univariate Gaussian mixture.

    The three arrays are parallel: index k describes component k. The
    constructor always copies its arguments, so a caller's sequences are never
    shared with a fit.
    """

    def __init__(self, mean, variance, weight):
        self.mean = np.array(mean, dtype=float, ndmin=1)
        self.variance = np.array(variance, dtype=float, ndmin=1)
        self.weight = np.array(weight, dtype=float, ndmin=1)

    @classmethod
    def from_components(cls, components):
        """Build parameters from an iterable of (mean, variance, weight) tuples."""
        components = list(components)
        return cls([c[0] for c in components], [c[1] for c in components], [c[2] for c in components])

    @classmethod
    def from_dict(cls, d):
        return cls(d['mean'], d['variance'], d['weight'])

    @property
    def n_components(self):
        return self.mean.shape[0]

    def components(self):
        return [(float(m), float(v), float(w)) for m, v, w in zip(self.mean, self.variance, self.weight)]

    def copy(self):
        return MixtureParameters(self.mean, self.variance, self.weight)

    def normalize(self):
        """Rescale weights in place so they sum to one."""
        self.weight /= np.sum(self.weight)
        return self

    def validate(self):
        """Raise InvalidInput unless the parameters can seed a fit."""
        if self.mean.ndim != 1 or self.variance.ndim != 1 or self.weight.ndim != 1:
            raise InvalidInput("Mixture parameters must be 1D arrays")

        if not (self.mean.shape == self.variance.shape == self.weight.shape):
            raise InvalidInput("Mismatched parameter lengths: %d means, %d variances, %d weights" % (
                self.mean.shape[0], self.variance.shape[0], self.weight.shape[0]))

        if self.n_components == 0:
            raise InvalidInput("Need at least one component")

        if not np.all(np.isfinite(self.mean)):
            raise InvalidInput("Means must be finite")

        if not np.all(np.isfinite(self.variance)) or np.any(self.variance <= 0):
            raise InvalidInput("Variances must be finite and strictly positive: %s" % (self.variance,))

        if not np.all(np.isfinite(self.weight)) or np.any(self.weight < 0) or np.sum(self.weight) <= 0:
            raise InvalidInput("Weights must be non-negative with a positive sum: %s" % (self.weight,))

        return self

    def to_dict(self):
        return {
            'mean': self.mean.tolist(),
            'variance': self.variance.tolist(),
            'weight': self.weight.tolist(),
        }

    def __eq__(self, other):
        if not isinstance(other, MixtureParameters):
            return NotImplemented
        return (np.array_equal(self.mean, other.mean) and
                np.array_equal(self.variance, other.variance) and
                np.array_equal(self.weight, other.weight))

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __repr__(self):
        return " + ".join("{w:.3g}*Norm[μ={m:.4g}, σ²={v:.4g}]".format(w=w, m=m, v=v)
                          for m, v, w in zip(self.mean, self.variance, self.weight))


def probability(data, params):
    """Compute the mixture density at every point of data for the given parameters"""

    if not hasattr(data, '__len__'):
        data = [data]

    data = np.array(data, dtype=float)

    centered = data[:, np.newaxis] - params.mean[np.newaxis, :]
    densities = np.exp(- centered ** 2 / (2 * params.variance[np.newaxis, :])) / np.sqrt(2 * np.pi * params.variance[np.newaxis, :])

    return np.sum(params.weight[np.newaxis, :] * densities, axis=1)

