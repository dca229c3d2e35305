# cache.py
import collections
import logging
from dataclasses import dataclass, asdict

from errors import ConfigurationError, ReplacementSetViolation

logger = logging.getLogger(__name__)


@dataclass
class CacheBlock:
    tag: int
    valid: bool = True
    dirty: bool = False


@dataclass
class CacheStats:
    reads: int = 0
    read_misses: int = 0
    writes: int = 0
    write_misses: int = 0
    write_backs: int = 0


class ReplacementSet:
    """
    One associative set with strict LRU ordering.
    Blocks live in an OrderedDict mapping tag -> CacheBlock.
    First key = least recently used, last key = most recently used.
    """

    def __init__(self, associativity):
        if associativity <= 0:
            raise ConfigurationError(f"associativity must be positive, got {associativity}")
        self.associativity = associativity
        self.blocks = collections.OrderedDict()

    def __len__(self):
        return len(self.blocks)

    def __contains__(self, tag):
        return tag in self.blocks

    def tags(self):
        """Resident tags from LRU to MRU."""
        return list(self.blocks)

    def find(self, tag):
        return self.blocks.get(tag)

    def promote(self, tag):
        if tag not in self.blocks:
            raise ReplacementSetViolation(f"promote of non-resident tag {tag:#x}")
        self.blocks.move_to_end(tag)

    def is_full(self):
        return len(self.blocks) == self.associativity

    def evict_lru(self):
        if not self.blocks:
            raise ReplacementSetViolation("evict_lru on an empty set")
        _, block = self.blocks.popitem(last=False)
        return block

    def remove(self, tag):
        """Take a resident block out of the set, handing ownership to the caller."""
        if tag not in self.blocks:
            raise ReplacementSetViolation(f"remove of non-resident tag {tag:#x}")
        return self.blocks.pop(tag)

    def insert(self, block):
        if self.is_full():
            raise ReplacementSetViolation("insert into a full set")
        if block.tag in self.blocks:
            raise ReplacementSetViolation(f"tag {block.tag:#x} already resident, promote it instead")
        self.blocks[block.tag] = block


class Cache:
    """
    Set-associative write-back cache level.
    Reads never allocate here; blocks enter through write() or fill().
    """

    def __init__(self, size, associativity, block_size, name="L1", writeback_sink=None):
        for label, value in (("size", size), ("associativity", associativity), ("block size", block_size)):
            if value <= 0:
                raise ConfigurationError(f"{name} {label} must be positive, got {value}")
        if size % (associativity * block_size) != 0:
            raise ConfigurationError(
                f"{name} size {size} is not a multiple of associativity x block size "
                f"({associativity} x {block_size})"
            )
        self.name = name
        self.size = size
        self.associativity = associativity
        self.block_size = block_size
        self.num_sets = size // (associativity * block_size)
        self.sets = [ReplacementSet(associativity) for _ in range(self.num_sets)]
        # called with the block address of every dirty eviction
        self.writeback_sink = writeback_sink
        self.counters = CacheStats()

    def _get_index_tag(self, address):
        set_index = (address // self.block_size) % self.num_sets
        tag = address // (self.block_size * self.num_sets)
        return set_index, tag

    def block_address(self, set_index, tag):
        return (tag * self.num_sets + set_index) * self.block_size

    def access(self, address):
        """
        Look up `address`. Return the resident block on a hit (now MRU), None on a miss.
        Does not allocate and does not touch the counters.
        """
        si, tag = self._get_index_tag(address)
        s = self.sets[si]
        block = s.find(tag)
        if block is not None:
            s.promote(tag)
        return block

    def write(self, address):
        """
        Write `address`: mark dirty on a hit, allocate a dirty block on a miss.
        Returns the (block_address, block) evicted to make room, or None.
        """
        si, tag = self._get_index_tag(address)
        s = self.sets[si]
        block = s.find(tag)
        if block is not None:
            s.promote(tag)
            block.dirty = True
            return None
        return self.fill(address, dirty=True)

    def fill(self, address, dirty=False):
        """
        Place the block holding `address` as MRU, evicting the LRU block if the set is full.
        The caller guarantees the block is not already resident.
        """
        si, tag = self._get_index_tag(address)
        s = self.sets[si]
        evicted = None
        if s.is_full():
            victim = s.evict_lru()
            victim_addr = self.block_address(si, victim.tag)
            logger.debug("%s evicts block %#x from set %d (dirty=%s)", self.name, victim_addr, si, victim.dirty)
            if victim.dirty:
                self.counters.write_backs += 1
                if self.writeback_sink is not None:
                    self.writeback_sink(victim_addr)
            evicted = (victim_addr, victim)
        s.insert(CacheBlock(tag=tag, valid=True, dirty=dirty))
        return evicted

    def stats(self):
        resident = sum(len(s) for s in self.sets)
        out = {
            "name": self.name,
            "size_bytes": self.size,
            "block_size": self.block_size,
            "associativity": self.associativity,
            "num_sets": self.num_sets,
            "resident_blocks": resident,
        }
        out.update(asdict(self.counters))
        return out
