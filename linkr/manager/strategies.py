"""
Short-code generation for linkr.

A strategy only proposes candidates. Uniqueness is decided by the store's
atomic insert; the resolver asks for a fresh candidate after each conflict.

Configuration (via linkr.config.settings):
- CODE_STRATEGY: "random" (default; unknown names fall back to it)
- CODE_LENGTH:   candidate length (default 6; clamped 4..32)
"""

import logging
import secrets
import string
from abc import ABC, abstractmethod
from typing import Dict, Optional, Type

from linkr.config import settings

log = logging.getLogger("linkr.strategies")

CODE_ALPHABET = string.digits + string.ascii_letters
MIN_CODE_LENGTH = 4
MAX_CODE_LENGTH = 32


def code_length(length: Optional[int] = None) -> int:
    """Requested length, or settings.CODE_LENGTH, kept within [4, 32]."""
    wanted = settings.CODE_LENGTH if length is None else int(length)
    return max(MIN_CODE_LENGTH, min(MAX_CODE_LENGTH, wanted))


class BaseStrategy(ABC):
    @abstractmethod
    def generate(self, length: Optional[int] = None) -> str:
        """Return one candidate code; every call may return a different one."""
        raise NotImplementedError  # pragma: no cover


class RandomStrategy(BaseStrategy):
    """Draws each character uniformly from 0-9, a-z, A-Z using the OS CSPRNG."""

    def generate(self, length: Optional[int] = None) -> str:
        return "".join(secrets.choice(CODE_ALPHABET) for _ in range(code_length(length)))


STRATEGY_REGISTRY: Dict[str, Type[BaseStrategy]] = {
    "random": RandomStrategy,
}


def get_strategy_from_config(name: Optional[str] = None) -> BaseStrategy:
    key = (name or settings.CODE_STRATEGY or "random").strip().lower()
    cls = STRATEGY_REGISTRY.get(key)
    if cls is None:
        log.warning("Unknown code strategy %r, falling back to random", key)
        cls = RandomStrategy
    return cls()
