import numpy as np

from .errors import InvalidInput
from .model import MixtureParameters, as_data

from logging import getLogger
logger = getLogger(__name__)

MIN_BINS = 3
MAX_BINS = 101
MIN_GAP_FRACTION = 0.05


def default_num_bins(n):
    """sqrt(n) clamped to [MIN_BINS, MAX_BINS], bumped to an odd number so the median bin is easy to see"""
    num_bins = int(round(np.sqrt(n)))

    if num_bins < MIN_BINS:
        num_bins = MIN_BINS

    if num_bins > MAX_BINS:
        num_bins = MAX_BINS

    if num_bins % 2 == 0:
        num_bins += 1

    return num_bins


class Histogram(object):
    """Equal-width histogram of 1D samples over the closed range [low, high].

    A sample x lands in bin floor((x - low) / bin_width); x == high lands in the
    last bin. Samples outside [low, high] are not counted.
    """

    def __init__(self, data, low=None, high=None, num_bins=None):
        self.data = as_data(data)

        self.low = float(np.min(self.data)) if low is None else float(low)
        self.high = float(np.max(self.data)) if high is None else float(high)
        if num_bins is None:
            num_bins = default_num_bins(self.data.shape[0])

        self.counts = None
        self.recompute(self.low, self.high, num_bins)

    @classmethod
    def from_levels(cls, data, num_bins=None):
        """Histogram of integer-valued samples such as 8-bit image pixels, in any array shape.

        By default every integer level between the smallest and the largest
        sample gets its own bin.
        """
        data = as_data(np.asarray(data).ravel())
        if not np.all(np.mod(data, 1) == 0):
            raise InvalidInput("Level data must be integer valued")

        low, high = np.min(data), np.max(data)
        if num_bins is None:
            num_bins = int(high - low) + 1

        return cls(data, low=low, high=high, num_bins=num_bins)

    @property
    def num_bins(self):
        return self.counts.shape[0]

    @property
    def bin_width(self):
        return (self.high - self.low) / self.num_bins

    @property
    def bin_edges(self):
        return self.low + np.arange(self.num_bins + 1) * self.bin_width

    @property
    def bin_centers(self):
        return self.low + (np.arange(self.num_bins) + 0.5) * self.bin_width

    @property
    def total(self):
        return int(np.sum(self.counts))

    def __len__(self):
        return self.num_bins

    def __getitem__(self, i):
        return int(self.counts[i])

    def recompute(self, low=None, high=None, num_bins=None):
        """Recount the samples, optionally over a new range and/or bin count.

        Arguments left as None keep their current value. A rejected call leaves
        the histogram untouched.
        """
        low = self.low if low is None else float(low)
        high = self.high if high is None else float(high)
        if num_bins is None:
            num_bins = self.num_bins

        if high < low:
            raise InvalidInput("high (%r) is below low (%r)" % (high, low))
        if num_bins < 1:
            raise InvalidInput("Need at least one bin, got %r" % (num_bins,))

        x = self.data[(self.data >= low) & (self.data <= high)]
        last_bin = num_bins - 1

        top = x == high
        bins = np.full(x.shape, last_bin, dtype=int)
        if np.any(~top):
            bin_width = (high - low) / num_bins
            # rounding can push a value just below high into a nonexistent bin
            bins[~top] = np.minimum(np.floor((x[~top] - low) / bin_width).astype(int), last_bin)

        self.low, self.high = low, high
        self.counts = np.bincount(bins, minlength=num_bins)

        dropped = self.data.shape[0] - x.shape[0]
        if dropped:
            logger.debug("%d samples outside [%g, %g] were not binned" % (dropped, low, high))

        return self

    def gmm_estimate(self, min_gap=None):
        """Propose Gaussian mixture components from the shape of the histogram.

        Bins are swept from the tallest to the shortest. The sweep stops once the
        current height drops below twice the average height of the bins that are
        still unassigned. A swept bin joins the interval of the nearest assigned
        bin within min_gap bins on either side, filling the gap between them,
        or starts a new interval. When no bin stands out (a flat histogram) all
        non-empty bins form a single interval. Every interval becomes one component: the
        count-weighted mean and variance of its bin centers, and its share of
        the total count.

        :param min_gap: Bins further apart than this start separate intervals. Defaults to 5% of the bin count, at least 1.
        :type min_gap: int

        :returns: (means, variances, weights) as arrays sorted by mean
        :rtype: tuple of numpy.ndarray
        """
        n = self.num_bins
        if min_gap is None:
            min_gap = max(1, int(round(MIN_GAP_FRACTION * n)))

        total = self.total
        if total == 0:
            raise InvalidInput("Histogram has no counts in [%g, %g]" % (self.low, self.high))

        counts = self.counts
        interval = np.full(n, -1, dtype=int)
        state = {'values_left': float(total), 'bins_left': n}
        next_id = 0

        def assign(i, interval_id):
            interval[i] = interval_id
            state['values_left'] -= counts[i]
            state['bins_left'] -= 1

        for height in np.unique(counts)[::-1]:
            if height <= 0 or state['bins_left'] == 0:
                break
            if height < 2 * state['values_left'] / state['bins_left']:
                break

            # ties are decided against the same stopping threshold
            for i in np.flatnonzero(counts == height):
                if interval[i] >= 0:
                    continue

                left = _nearest_assigned(interval, i, -1, min_gap)
                right = _nearest_assigned(interval, i, 1, min_gap)

                if left is None and right is None:
                    assign(i, next_id)
                    next_id += 1
                    continue

                if left is not None and right is not None and interval[left] != interval[right]:
                    interval[interval == interval[right]] = interval[left]

                interval_id = interval[left] if left is not None else interval[right]
                assign(i, interval_id)
                for j in range(left + 1 if left is not None else i, right if right is not None else i + 1):
                    if interval[j] < 0:
                        assign(j, interval_id)

        if np.all(interval < 0):
            # flat histogram: no bin stood out, so everything counted is one component
            logger.warning("no bin reached twice the average height, using one interval over all non-empty bins")
            interval[counts > 0] = 0

        ids = np.unique(interval[interval >= 0])
        logger.info("histogram estimate found %d interval(s) with min_gap %d" % (ids.shape[0], min_gap))

        centers = self.bin_centers
        floor_variance = self.bin_width ** 2 / 12
        means, variances, weights = [], [], []
        for interval_id in ids:
            member = interval == interval_id
            w = counts[member].astype(float)
            c = centers[member]

            if np.sum(w) == 0:
                continue

            mean = np.sum(w * c) / np.sum(w)
            variance = np.sum(w * (c - mean) ** 2) / np.sum(w)

            means.append(mean)
            variances.append(max(variance, floor_variance))
            weights.append(np.sum(w) / total)

        order = np.argsort(means)
        weights = np.array(weights)[order]

        return (np.array(means)[order], np.array(variances)[order], weights / np.sum(weights))

    def gmm_estimate_params(self, min_gap=None):
        """:meth:`gmm_estimate` packed as :class:`gmmfit.model.MixtureParameters`"""
        return MixtureParameters(*self.gmm_estimate(min_gap))

    def to_tsv(self):
        """Tab-separated listing of every bin range and its count"""
        lines = ["Bin\tFrequency"]
        edges = self.bin_edges

        for i in range(self.num_bins):
            close = "]" if i == self.num_bins - 1 else ")"
            lines.append("[%g ~ %g%s\t%d" % (edges[i], edges[i + 1], close, self.counts[i]))

        return "\n".join(lines) + "\n"


def _nearest_assigned(interval, i, step, min_gap):
    for d in range(1, min_gap + 1):
        j = i + step * d
        if j < 0 or j >= interval.shape[0]:
            return None
        if interval[j] >= 0:
            return j
    return None
