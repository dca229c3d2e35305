# tracefile.py
import logging
import re
from typing import Iterator, NamedTuple

import numpy as np

from errors import TraceParseError

logger = logging.getLogger(__name__)

OPS = ("r", "w")
HEX_ADDRESS = re.compile(r"[0-9a-fA-F]+")


class TraceEvent(NamedTuple):
    op: str
    address: int


def parse_trace_line(line, line_no=None):
    """Parse `<op> <hex address>`. Returns None for a blank line."""
    parts = line.split()
    if not parts:
        return None
    if len(parts) != 2:
        raise TraceParseError(f"expected 2 fields, got {len(parts)}", line_no, line.rstrip("\n"))
    op, value = parts
    op = op.lower()
    if op not in OPS:
        raise TraceParseError(f"unknown operation {op!r}", line_no, line.rstrip("\n"))
    # int(x, 16) also takes "0x", "_" and signs
    if not HEX_ADDRESS.fullmatch(value):
        raise TraceParseError("address is not bare hexadecimal", line_no, line.rstrip("\n"))
    return TraceEvent(op, int(value, 16))


def read_trace(path) -> Iterator[TraceEvent]:
    logger.info("Reading trace %s", path)
    with open(path, "r") as f:
        for line_no, line in enumerate(f, start=1):
            event = parse_trace_line(line, line_no)
            if event is not None:
                yield event


def write_trace(events, path):
    with open(path, "w") as f:
        for op, address in events:
            f.write(f"{op} {address:x}\n")
    return path


class _AddressStream:
    """Block-number generator for synthetic traces."""

    def __init__(self, num_blocks, pattern, rng):
        if pattern not in ("sequential", "random", "mixed"):
            raise ValueError(f"unknown access pattern {pattern!r}")
        self.num_blocks = num_blocks
        self.pattern = pattern
        self.rng = rng
        self._seq_ptr = 0

    def _sequential(self):
        addr = self._seq_ptr
        self._seq_ptr = (addr + 1) % self.num_blocks
        return addr

    def next(self):
        if self.pattern == "sequential":
            return self._sequential()
        elif self.pattern == "random":
            return int(self.rng.integers(0, self.num_blocks))
        else:  # mixed: mostly sequential with some random
            if self.rng.random() < 0.8:
                return self._sequential()
            return int(self.rng.integers(0, self.num_blocks))


def generate_trace(num_requests=10000, working_set_kb=64, block_size=32,
                   read_ratio=0.8, access_pattern="mixed", random_seed=None):
    """
    Build a synthetic list of TraceEvents over a working set of `working_set_kb`.
    Addresses land at random offsets inside the chosen block.
    """
    rng = np.random.default_rng(random_seed)
    num_blocks = max(1, (working_set_kb * 1024) // block_size)
    stream = _AddressStream(num_blocks, access_pattern, rng)
    events = []
    for _ in range(num_requests):
        block = stream.next()
        offset = int(rng.integers(0, block_size))
        op = "r" if rng.random() < read_ratio else "w"
        events.append(TraceEvent(op, block * block_size + offset))
    return events
