# hierarchy.py
import logging
from typing import Optional

from cache import Cache, CacheBlock, ReplacementSet
from errors import ConfigurationError

logger = logging.getLogger(__name__)

READ = "r"
WRITE = "w"


class VictimBuffer:
    """
    Small fully-associative buffer of blocks evicted from L1.
    With a single set there are no index bits, so the tag is the block number.
    """

    def __init__(self, num_blocks, block_size):
        if num_blocks <= 0 or block_size <= 0:
            raise ConfigurationError(
                f"victim buffer needs positive blocks and block size, got {num_blocks} and {block_size}"
            )
        self.num_blocks = num_blocks
        self.block_size = block_size
        self.entries = ReplacementSet(num_blocks)
        self.lookups = 0
        self.hits = 0

    def _tag(self, address):
        return address // self.block_size

    def find(self, address):
        return self.entries.find(self._tag(address))

    def take(self, address):
        return self.entries.remove(self._tag(address))

    def invalidate(self, address):
        tag = self._tag(address)
        if tag in self.entries:
            self.entries.remove(tag)

    def put(self, address):
        """Insert the block holding `address` as MRU, dropping the LRU entry if full."""
        if self.entries.is_full():
            dropped = self.entries.evict_lru()
            logger.debug("victim buffer drops block %#x", dropped.tag * self.block_size)
        self.entries.insert(CacheBlock(tag=self._tag(address), valid=True, dirty=False))

    def stats(self):
        return {
            "name": "VC",
            "num_blocks": self.num_blocks,
            "resident_blocks": len(self.entries),
            "lookups": self.lookups,
            "hits": self.hits,
        }


class HierarchyController:
    """
    Routes read/write events through L1, the optional victim buffer and the optional L2.
    """

    def __init__(self, l1: Cache, l2: Optional[Cache] = None, victim: Optional[VictimBuffer] = None):
        self.l1 = l1
        self.l2 = l2
        self.victim = victim
        if l2 is not None and l2.block_size != l1.block_size:
            raise ConfigurationError("L2 must use the L1 block size")
        if victim is not None and victim.block_size != l1.block_size:
            raise ConfigurationError("victim buffer must use the L1 block size")
        self.l1.writeback_sink = self._write_back
        self.events = 0

    def levels(self):
        return [c for c in (self.l1, self.l2) if c is not None]

    def process(self, op, address):
        self.events += 1
        if op == READ:
            self.read(address)
        elif op == WRITE:
            self.write(address)
        else:
            raise ValueError(f"unknown operation {op!r}")

    def read(self, address):
        l1 = self.l1
        l1.counters.reads += 1
        if l1.access(address) is not None:
            return
        l1.counters.read_misses += 1

        if self.victim is not None:
            self.victim.lookups += 1
            if self.victim.find(address) is not None:
                self.victim.hits += 1
                self._swap_in(address)
                return

        if self.l2 is not None:
            self.l2.counters.reads += 1
            if self.l2.access(address) is None:
                # main memory is not modeled below L2
                self.l2.counters.read_misses += 1

    def write(self, address):
        l1 = self.l1
        l1.counters.writes += 1
        if l1.access(address) is None:
            l1.counters.write_misses += 1
            if self.victim is not None:
                # L1 takes the newest copy, a stale one must not stay behind
                self.victim.invalidate(address)
        evicted = l1.write(address)
        if evicted is not None and self.victim is not None:
            self.victim.put(evicted[0])

    def _swap_in(self, address):
        block = self.victim.take(address)
        evicted = self.l1.fill(address, dirty=block.dirty)
        logger.debug("victim hit on %#x, block moves back to L1", address)
        if evicted is not None:
            # the slot freed by take() is still open, so this never drops an entry
            self.victim.put(evicted[0])

    def _write_back(self, block_address):
        logger.debug("write-back of block %#x from L1", block_address)
        if self.l2 is None:
            return
        l2 = self.l2
        l2.counters.writes += 1
        if l2.access(block_address) is None:
            l2.counters.write_misses += 1
        l2.write(block_address)
