# visualize.py
import os
import matplotlib.pyplot as plt

COUNTERS = ["reads", "read_misses", "writes", "write_misses", "write_backs"]


def _ensure_dir(outpath):
    d = os.path.dirname(outpath)
    if d:
        os.makedirs(d, exist_ok=True)


def plot_level_stats(summary, outpath):
    """Grouped bar chart of the counters for every cache level."""
    _ensure_dir(outpath)
    levels = summary["levels"]
    width = 0.8 / max(1, len(levels))
    plt.figure(figsize=(8, 4))
    for i, level in enumerate(levels):
        xs = [x + i * width for x in range(len(COUNTERS))]
        plt.bar(xs, [level[c] for c in COUNTERS], width=width, label=level["name"])
    plt.xticks([x + width * (len(levels) - 1) / 2 for x in range(len(COUNTERS))],
               [c.replace("_", " ") for c in COUNTERS])
    plt.title(f"Cache Counters ({summary['total_events']} events)")
    plt.ylabel("Count")
    plt.legend()
    plt.grid(True, axis="y")
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()


def plot_miss_rates(summary, outpath):
    _ensure_dir(outpath)
    names = [level["name"] for level in summary["levels"]]
    rates = [level["miss_rate"] for level in summary["levels"]]
    plt.figure(figsize=(4, 4))
    plt.bar(names, rates)
    plt.ylim(0, 1)
    plt.title("Miss Rate per Level")
    plt.ylabel("Miss rate")
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()
