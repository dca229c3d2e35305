# main.py
import argparse
import logging
import os
import sys

from config import from_args, load_config
from errors import ConfigurationError, TraceParseError
from simulator import SimulationRunner, format_report

USAGE_ARGS = "L1_SIZE L1_ASSOC L1_BLOCKSIZE VC_NUM_BLOCKS L2_SIZE L2_ASSOC TRACE_FILE"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Trace-driven cache hierarchy simulator")
    parser.add_argument("params", nargs="*", metavar="ARG", help=f"{USAGE_ARGS} (omit when using --config)")
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--results-dir", help="write results.json to this directory")
    parser.add_argument("--plot", action="store_true", help="save counter and miss-rate plots")
    parser.add_argument("-v", "--verbose", action="store_true", help="log evictions and write-backs")
    args = parser.parse_args(argv)
    if args.config is None and len(args.params) != 7:
        parser.error(f"expected {USAGE_ARGS} or --config")
    if args.config is not None and args.params:
        parser.error("positional arguments cannot be combined with --config")
    return args


def build_config(args):
    if args.config:
        cfg = load_config(args.config)
    else:
        try:
            numbers = [int(p) for p in args.params[:6]]
        except ValueError as e:
            raise ConfigurationError(f"cache parameters must be integers: {e}") from e
        cfg = {"cache": from_args(*numbers), "trace": {"path": args.params[6]}}
    out = cfg.setdefault("output", {})
    if args.results_dir:
        out["results_dir"] = args.results_dir
    if args.plot:
        out["plot"] = True
    return cfg


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s: %(message)s")
    try:
        cfg = build_config(args)
        runner = SimulationRunner(cfg)
        summary = runner.run()
        print(format_report(summary))
        save_outputs(runner, summary, cfg["output"])
    except ConfigurationError as e:
        logging.error("Invalid configuration: %s", e)
        return 1
    except TraceParseError as e:
        logging.error("Malformed trace: %s", e)
        return 1
    except OSError as e:
        logging.error("%s", e)
        return 1
    return 0


def save_outputs(runner, summary, out_cfg):
    if out_cfg.get("results_dir"):
        path = runner.save_results(summary, out_cfg)
        print("Results saved to:", path)
    if out_cfg.get("plot"):
        # imported here so plain runs do not pull in matplotlib
        from visualize import plot_level_stats, plot_miss_rates
        plot_dir = out_cfg.get("results_dir", "results")
        plot_level_stats(summary, os.path.join(plot_dir, "level_stats.png"))
        plot_miss_rates(summary, os.path.join(plot_dir, "miss_rates.png"))
        print("Plots saved in", plot_dir)


if __name__ == "__main__":
    sys.exit(main())
