import numpy as np
import matplotlib as mpl
mpl.use('Agg')
import matplotlib.pyplot as plt
from scipy.stats import norm

from .model import probability

from logging import getLogger
logger = getLogger(__name__)


def rgb(r,g,b):

    return [ r/255, g/255, b/255 ]


# tab10-like colors, cycled over components
COMPONENT_COLORS = [rgb(31,119,180), rgb(255,127,14), rgb(44,160,44), rgb(148,103,189), rgb(140,86,75)]


def plot_fit(fig_path, histogram, params, n_points=500):
    """Draw histogram as a density, each weighted component and the mixture, and save to fig_path"""
    edges = histogram.bin_edges
    width = histogram.bin_width
    total = histogram.total

    heights = histogram.counts / (total * width) if total > 0 and width > 0 else np.zeros(histogram.num_bins)
    plt.bar(edges[:-1], heights, width=width, align='edge', color=rgb(214,39,40), alpha=0.3, edgecolor=rgb(214,39,40))

    x = np.linspace(histogram.low, histogram.high, n_points)
    for k, (mean, variance, weight) in enumerate(params.components()):
        y = weight * norm.pdf(x, loc=mean, scale=np.sqrt(variance))
        color = COMPONENT_COLORS[k % len(COMPONENT_COLORS)]
        plt.plot(x, y, color=color, linestyle='dashed')
        plt.axvline(x=mean, linewidth=1, color=color, alpha=0.6)

    plt.plot(x, probability(x, params), color='black', linewidth=2)
    plt.grid(True)
    plt.xlabel('Value')
    plt.ylabel('Probability density')
    plt.xlim(histogram.low, histogram.high)

    ymin, ymax = plt.gca().get_ylim()
    xmin, xmax = plt.gca().get_xlim()
    plt.text(xmin + (xmax - xmin)*0.02, ymax*0.92, r'$K=%d$' % params.n_components)

    plt.savefig(fig_path, bbox_inches="tight", transparent=True)
    plt.close()
    logger.info("Generated the fit plot %s." % fig_path)
