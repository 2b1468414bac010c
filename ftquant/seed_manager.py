"""Deterministic seed derivation for Monte Carlo sampling."""

from __future__ import annotations

import hashlib
from typing import Any, Optional

import numpy as np


class SeedManager:
    """Derives independent seeds per component from one master seed.

    Each fault tree's uncertainty analysis draws from its own generator
    seeded from the master seed and the fault tree name, so results do not
    depend on the order or parallelism of the run.

    Usage:
        seed_mgr = SeedManager(42)
        rng = seed_mgr.create_generator("uncertainty", "FT1")
    """

    def __init__(self, master_seed: Optional[int] = None) -> None:
        """Initialize the seed manager.

        Args:
            master_seed: Master seed for deterministic sampling. If None,
                        seed derivation returns None (non-deterministic).
        """
        self.master_seed = master_seed

    def derive_seed(self, *components: Any) -> Optional[int]:
        """Derive a deterministic seed from master seed and component identifiers.

        Args:
            *components: Identifiers (strings, integers, etc.) that uniquely
                        identify the consumer of the seed.

        Returns:
            Derived seed as positive integer, or None if no master seed set.

        Example:
            seed_mgr = SeedManager(42)
            tree_seed = seed_mgr.derive_seed("uncertainty", "FT1")
        """
        if self.master_seed is None:
            return None

        seed_input = f"{self.master_seed}:" + ":".join(str(c) for c in components)
        hash_digest = hashlib.sha256(seed_input.encode()).digest()

        # First 4 bytes as a positive 32-bit integer
        seed_value = int.from_bytes(hash_digest[:4], byteorder="big")
        return seed_value & 0x7FFFFFFF

    def create_generator(self, *components: Any) -> np.random.Generator:
        """Create a numpy Generator with a derived seed.

        Args:
            *components: Component identifiers for seed derivation.

        Returns:
            Seeded generator, or one seeded from OS entropy if no master seed.
        """
        return np.random.default_rng(self.derive_seed(*components))
