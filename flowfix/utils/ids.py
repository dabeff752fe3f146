# utils/ids.py
from __future__ import annotations

import random
import string
from typing import Optional

_ALPHABET = string.ascii_lowercase + string.digits


class PlaceholderGenerator:
    """
    Source of the random-looking values the auto-filler has to invent
    (node ids, workflow ids, webhook paths).

    Pass a seed to get reproducible output in tests; the default instance
    draws from a fresh, unseeded ``random.Random``.
    """

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def token(self, length: int) -> str:
        return "".join(self._rng.choice(_ALPHABET) for _ in range(length))

    def node_id(self) -> str:
        return "node_" + self.token(9)

    def workflow_id(self) -> str:
        return "workflow_" + self.token(9)

    def webhook_path(self) -> str:
        return "webhook-" + self.token(6)
