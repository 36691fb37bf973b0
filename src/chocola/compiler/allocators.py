"""Identifier allocators used while expanding components.

Three kinds of identifiers are handed out during a build:

* runtime identifiers (``a``, ``b``, ... ``z``, ``aa``) namespace the entry
  point of every scripted component definition,
* scope classes (``sc-1a2b3c``) isolate a component's styles,
* binding ids (``chid-k3j9x0a1qz``) mark the root element of each instance.

All allocators are plain objects owned by a single build.
"""

from __future__ import annotations

import hashlib
import random
import string
from typing import Dict, Optional, Set

ALPHABET = string.ascii_lowercase
BASE36 = string.digits + string.ascii_lowercase


def index_to_label(index: int) -> str:
    """Map 0 -> 'a', 25 -> 'z', 26 -> 'aa', 27 -> 'ab' (spreadsheet columns)."""
    if index < 0:
        raise ValueError(f"label index must be non-negative, got {index}")

    label = ""
    n = index + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        label = ALPHABET[rem] + label
    return label


class RuntimeLetterAllocator:
    """Hands out one label per distinct component definition."""

    def __init__(self) -> None:
        self._labels: Dict[str, str] = {}

    def label_for(self, key: str) -> str:
        label = self._labels.get(key)
        if label is None:
            label = index_to_label(len(self._labels))
            self._labels[key] = label
        return label

    def __contains__(self, key: object) -> bool:
        return key in self._labels

    def __len__(self) -> int:
        return len(self._labels)


class CssScopeAllocator:
    """Deterministic scope class per component definition."""

    def __init__(self, prefix: str = "sc-", length: int = 6) -> None:
        self.prefix = prefix
        self.length = length
        self._classes: Dict[str, str] = {}
        self._issued: Set[str] = set()

    def class_for(self, key: str) -> str:
        existing = self._classes.get(key)
        if existing is not None:
            return existing

        salt = 0
        while True:
            seed = key if salt == 0 else f"{key}#{salt}"
            digest = hashlib.md5(seed.encode("utf-8")).hexdigest()[: self.length]
            candidate = f"{self.prefix}{digest}"
            if candidate not in self._issued:
                break
            salt += 1

        self._classes[key] = candidate
        self._issued.add(candidate)
        return candidate

    def is_issued(self, class_name: str) -> bool:
        return class_name in self._issued


class BindingIdAllocator:
    """Unique per-instance binding ids."""

    def __init__(
        self,
        prefix: str = "chid-",
        length: int = 10,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.prefix = prefix
        self.length = length
        self._rng = rng or random.Random()
        self._issued: Set[str] = set()

    def next_id(self) -> str:
        while True:
            token = "".join(self._rng.choice(BASE36) for _ in range(self.length))
            candidate = f"{self.prefix}{token}"
            if candidate not in self._issued:
                self._issued.add(candidate)
                return candidate

    def is_issued(self, binding_id: str) -> bool:
        return binding_id in self._issued

    def __len__(self) -> int:
        return len(self._issued)
