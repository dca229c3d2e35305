# config.py
import json
from dataclasses import dataclass, asdict, fields

from errors import ConfigurationError


@dataclass
class HierarchyConfig:
    l1_size: int
    l1_assoc: int
    l1_block_size: int
    vc_num_blocks: int = 0
    l2_size: int = 0
    l2_assoc: int = 0

    @classmethod
    def from_dict(cls, d):
        known = {f.name for f in fields(cls)}
        unknown = set(d) - known
        if unknown:
            raise ConfigurationError(f"unknown cache settings: {', '.join(sorted(unknown))}")
        for k, v in d.items():
            if isinstance(v, bool) or (isinstance(v, float) and not v.is_integer()):
                raise ConfigurationError(f"{k} must be an integer, got {v!r}")
        try:
            values = {k: int(v) for k, v in d.items()}
            return cls(**values)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"bad cache settings: {e}") from e

    @property
    def has_l2(self):
        return self.l2_size > 0

    @property
    def has_victim(self):
        return self.vc_num_blocks > 0

    def validate(self):
        """Raise ConfigurationError for any geometry the simulator cannot build."""
        for name in ("l1_size", "l1_assoc", "l1_block_size"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("vc_num_blocks", "l2_size", "l2_assoc"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must not be negative, got {getattr(self, name)}")
        _check_divisible("L1", self.l1_size, self.l1_assoc, self.l1_block_size)
        if (self.l2_size > 0) != (self.l2_assoc > 0):
            raise ConfigurationError("l2_size and l2_assoc must both be set or both be 0")
        if self.has_l2:
            _check_divisible("L2", self.l2_size, self.l2_assoc, self.l1_block_size)
        return self

    def to_dict(self):
        return asdict(self)


def _check_divisible(level, size, assoc, block_size):
    if size % (assoc * block_size) != 0:
        raise ConfigurationError(
            f"{level} size {size} is not a multiple of associativity x block size ({assoc} x {block_size})"
        )


def load_config(path="config.json"):
    with open(path, "r") as f:
        try:
            cfg = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"{path} is not valid JSON: {e}") from e
    if "cache" not in cfg:
        raise ConfigurationError(f"{path} has no 'cache' section")
    return cfg


def from_args(l1_size, l1_assoc, l1_block_size, vc_num_blocks, l2_size, l2_assoc):
    return HierarchyConfig(l1_size, l1_assoc, l1_block_size, vc_num_blocks, l2_size, l2_assoc).validate()
