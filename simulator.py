# simulator.py
import os
import json
import logging

from cache import Cache
from config import HierarchyConfig
from hierarchy import HierarchyController, VictimBuffer
from tracefile import generate_trace, read_trace

logger = logging.getLogger(__name__)


def build_hierarchy(cache_cfg: HierarchyConfig):
    cache_cfg.validate()
    l1 = Cache(cache_cfg.l1_size, cache_cfg.l1_assoc, cache_cfg.l1_block_size, name="L1")
    l2 = None
    if cache_cfg.has_l2:
        l2 = Cache(cache_cfg.l2_size, cache_cfg.l2_assoc, cache_cfg.l1_block_size, name="L2")
    victim = None
    if cache_cfg.has_victim:
        victim = VictimBuffer(cache_cfg.vc_num_blocks, cache_cfg.l1_block_size)
    return HierarchyController(l1, l2, victim)


class SimulationRunner:
    def __init__(self, cfg):
        self.cfg = cfg
        cache_cfg = cfg["cache"]
        if not isinstance(cache_cfg, HierarchyConfig):
            cache_cfg = HierarchyConfig.from_dict(cache_cfg)
        self.cache_cfg = cache_cfg.validate()
        self.controller = build_hierarchy(self.cache_cfg)

    def events(self):
        """Trace events from cfg["trace"]["path"], or a synthetic trace when no path is set."""
        trace_cfg = self.cfg.get("trace", {})
        if trace_cfg.get("path"):
            return read_trace(trace_cfg["path"])
        syn = self.cfg.get("synthetic", {})
        logger.info("No trace file configured, generating a %s trace", syn.get("access_pattern", "mixed"))
        return generate_trace(
            num_requests=syn.get("num_requests", 10000),
            working_set_kb=syn.get("working_set_kb", 64),
            block_size=self.cache_cfg.l1_block_size,
            read_ratio=syn.get("read_ratio", 0.8),
            access_pattern=syn.get("access_pattern", "mixed"),
            random_seed=syn.get("random_seed", None),
        )

    def run(self, events=None):
        if events is None:
            events = self.events()
        for op, address in events:
            self.controller.process(op, address)
        logger.info("Processed %d events", self.controller.events)
        return self.summary()

    def summary(self):
        levels = []
        for cache in self.controller.levels():
            s = cache.stats()
            accesses = s["reads"] + s["writes"]
            misses = s["read_misses"] + s["write_misses"]
            s["miss_rate"] = misses / accesses if accesses else 0.0
            levels.append(s)
        summary = {
            "config": self.cache_cfg.to_dict(),
            "total_events": self.controller.events,
            "levels": levels,
        }
        if self.controller.victim is not None:
            summary["victim_buffer"] = self.controller.victim.stats()
        return summary

    def save_results(self, summary, out_cfg):
        results_dir = out_cfg.get("results_dir", "results")
        os.makedirs(results_dir, exist_ok=True)
        path = os.path.join(results_dir, out_cfg.get("results_file", "results.json"))
        with open(path, "w") as f:
            json.dump(summary, f, indent=2)
        return path


def format_report(summary):
    lines = []
    for level in summary["levels"]:
        lines.append(f"{level['name']} Cache Stats:")
        lines.append(f"Number of reads: {level['reads']}")
        lines.append(f"Number of read misses: {level['read_misses']}")
        lines.append(f"Number of writes: {level['writes']}")
        lines.append(f"Number of write misses: {level['write_misses']}")
        lines.append(f"Number of writebacks: {level['write_backs']}")
    vc = summary.get("victim_buffer")
    if vc:
        lines.append("Victim Buffer Stats:")
        lines.append(f"Number of lookups: {vc['lookups']}")
        lines.append(f"Number of hits: {vc['hits']}")
    return "\n".join(lines)
