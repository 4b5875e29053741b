'''
   gmmfit command line front end.

   Usage:
      gmmfit fit  INPUT [options]
      gmmfit hist INPUT [options]

      Try 'gmmfit -h' for more information.

    Purpose: fit a one dimensional Gaussian mixture to one column of a
             tab separated file, starting either from a given guess or
             from the histogram estimate.
'''
import sys, os, json, argparse
import logging
import pandas as pd

from ._version   import __version__
from .em         import fit, MAX_ITERATIONS, TERMINATION_TOLERANCE
from .search     import multiple_fits, MAX_ROUNDS
from .histogram  import Histogram
from .classify   import categorize, to_arrays
from .errors     import GMMError
from .model      import MixtureParameters
from .plot       import plot_fit

logger = logging.getLogger(__name__)

# https://stackoverflow.com/questions/5574702/how-to-print-to-stderr-in-python
def eprint(*args, **kwargs):
    print(*args, file=sys.stderr, **kwargs)

def setup_logging(log_path=None):
    ### logging conf ###
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    formatter = logging.Formatter('%(module)s:%(asctime)s:%(lineno)d:%(levelname)s:%(message)s')

    handlers = [logging.StreamHandler()]
    if log_path:
        handlers.append(logging.FileHandler(log_path, 'w'))

    for h in handlers:
        h.setFormatter(formatter)
        root.addHandler(h)
    #####################
    return handlers

def read_samples(path, column=0):
    df = pd.read_table(path, sep='\t', header=None, comment='#')
    if column >= df.shape[1]:
        raise GMMError("column %d does not exist in %s (%d columns)" % (column, path, df.shape[1]))
    return pd.to_numeric(df[column], errors='coerce').dropna().values

def command_hist(args):
    if not os.path.exists(args.input):
        eprint("Error: input file %s does not exist." % args.input)
        return 1

    try:
        samples = read_samples(args.input, args.column)
        h = Histogram(samples, low=args.low, high=args.high, num_bins=args.nbins)
    except GMMError as e:
        eprint("Error: %s" % e)
        return 1
    sys.stdout.write(h.to_tsv())
    return 0

def command_fit(args):
    if not os.path.exists(args.input):
        eprint("Error: input file %s does not exist." % args.input)
        return 1

    if (args.means is None) != (args.variances is None):
        eprint("Error: --means and --variances have to be given together.")
        return 1

    if args.ncpu < 1:
        eprint("Error: -p/--ncpu needs to be 1 or higher.")
        return 1

    if args.out:
        if not os.path.isdir(args.out):
            os.makedirs(args.out, exist_ok=True)
        handlers = setup_logging(os.path.join(args.out, "log_gmmfit.txt"))
    else:
        handlers = setup_logging()

    try:
        return _fit_and_report(args)
    except GMMError as e:
        logger.error("%s: %s" % (type(e).__name__, e))
        return 1
    finally:
        _remove_handlers(handlers)

def _fit_and_report(args):
    logger.info("Cmd: %s" % " ".join(sys.argv))
    samples = read_samples(args.input, args.column)
    logger.info("%d samples were read from %s." % (len(samples), args.input))

    h = Histogram(samples, num_bins=args.nbins)
    if args.means is not None:
        weights = args.weights if args.weights is not None else [1.0] * len(args.means)
        initial = MixtureParameters(args.means, args.variances, weights)
    else:
        initial = h.gmm_estimate_params(args.min_gap)
        logger.info("Histogram estimate: %s" % initial)

    if args.multi:
        result = multiple_fits(samples, initial, max_rounds=args.max_rounds, tol=args.tol,
                               max_iterations=args.max_iter, n_proc=args.ncpu)
    else:
        result = fit(samples, initial, max_iterations=args.max_iter, tol=args.tol)

    print("log-likelihood\t%.6f" % result.log_likelihood)
    print("component\tmean\tvariance\tweight")
    for k, (m, v, w) in enumerate(result.params.components()):
        print("%d\t%.6g\t%.6g\t%.6g" % (k, m, v, w))

    if args.out:
        json_path = os.path.join(args.out, "fit_result.json")
        with open(json_path, "w") as f:
            json.dump({
                'params': result.params.to_dict(),
                'log_likelihood': result.log_likelihood,
                'n_iterations': result.n_iterations,
                'stop_reason': result.stop_reason,
                'n_samples': int(len(samples)),
            }, f, indent=4)
        logger.info("Fit result was written into a JSON file: %s" % json_path)

        component, probability = to_arrays(categorize(samples, result.params))
        cat_path = os.path.join(args.out, "categories.tsv")
        pd.DataFrame({'value': samples, 'component': component, 'probability': probability}) \
          .to_csv(cat_path, sep='\t', index=False, na_rep='')
        logger.info("Categories were written into %s" % cat_path)

        plot_fit(os.path.join(args.out, "fig_gmmfit.png"), h, result.params)

    return 0

def _remove_handlers(handlers):
    root = logging.getLogger()
    for h in handlers:
        root.removeHandler(h)
        h.close()

def command_help(args):
    get_parser().parse_args([args.command, '--help'])

def get_parser():
    parser = argparse.ArgumentParser(
        prog='gmmfit',
        description='gmmfit fits a one dimensional Gaussian mixture model with EM and a multi-start search.',
        add_help=True,
    )
    parser.add_argument('-v', '--version', action='version', version='%(prog)s ' + __version__)
    subparsers = parser.add_subparsers()

    # fit
    parser_fit = subparsers.add_parser('fit', help='see `fit -h`')
    parser_fit.add_argument('input', help='tab separated file holding the samples', type=str)
    parser_fit.add_argument('-c', '--column', help='0-based column holding the samples [Default is 0].', type=int,\
                            dest = 'column', default = 0)
    parser_fit.add_argument('-o', '--output', help='path for output directory (json, categories, figure and log)', type=str,\
                            dest = 'out', default = None)
    parser_fit.add_argument('--means', help='initial means. Without a guess the histogram estimate is used.', type=float, nargs='+',\
                            dest = 'means', default = None)
    parser_fit.add_argument('--variances', help='initial variances', type=float, nargs='+', dest = 'variances', default = None)
    parser_fit.add_argument('--weights', help='initial weights [Default is uniform].', type=float, nargs='+',\
                            dest = 'weights', default = None)
    parser_fit.add_argument('-m', '--multi', help='use the multi-start search instead of a single EM run.', action = 'store_true',\
                            dest = 'multi', default = False)
    parser_fit.add_argument('-p', '--ncpu', help='the number of worker processes for the multi-start search [Default is 1].', type=int,\
                            dest = 'ncpu', default = 1)
    parser_fit.add_argument('--max_iter', help='maximum EM iterations per fit [Default is %d].' % MAX_ITERATIONS, type=int,\
                            dest = 'max_iter', default = MAX_ITERATIONS)
    parser_fit.add_argument('--max_rounds', help='maximum rounds of the multi-start search [Default is %d].' % MAX_ROUNDS, type=int,\
                            dest = 'max_rounds', default = MAX_ROUNDS)
    parser_fit.add_argument('--tol', help='relative log-likelihood tolerance [Default is %g].' % TERMINATION_TOLERANCE, type=float,\
                            dest = 'tol', default = TERMINATION_TOLERANCE)
    parser_fit.add_argument('--nbins', help='number of histogram bins [Default is sqrt(n), odd, within 3-101].', type=int,\
                            dest = 'nbins', default = None)
    parser_fit.add_argument('--min_gap', help='minimum bin gap between two components of the histogram estimate.', type=int,\
                            dest = 'min_gap', default = None)
    parser_fit.set_defaults(handler=command_fit)

    # hist
    parser_hist = subparsers.add_parser('hist', help='see `hist -h`')
    parser_hist.add_argument('input', help='tab separated file holding the samples', type=str)
    parser_hist.add_argument('-c', '--column', help='0-based column holding the samples [Default is 0].', type=int,\
                             dest = 'column', default = 0)
    parser_hist.add_argument('--low', type=float, dest = 'low', default = None, help='lower end of the range [Default is the minimum].')
    parser_hist.add_argument('--high', type=float, dest = 'high', default = None, help='upper end of the range [Default is the maximum].')
    parser_hist.add_argument('--nbins', type=int, dest = 'nbins', default = None, help='number of bins.')
    parser_hist.set_defaults(handler=command_hist)

    # help
    parser_help = subparsers.add_parser('help', help='see `help -h`')
    parser_help.add_argument('command', help='')
    parser_help.set_defaults(handler=command_help)

    return parser

def main(argv=None):
    parser = get_parser()
    args = parser.parse_args(argv)

    if hasattr(args, 'handler'):
        return args.handler(args)
    else:
        parser.print_help()
        return 0

def run():
    sys.exit(main())

# stand alone
if __name__ == "__main__":
    run()
