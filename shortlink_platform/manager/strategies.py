"""
Short-code generation for shortlink_platform.

Provided strategies:
- RandomStrategy: random Base62 code whose length is drawn uniformly from
  [min_length, max_length] on every call, then each character drawn from the
  62-character alphabet (a-z, A-Z, 0-9).

Notes:
- Strategies are stateless; uniqueness is enforced by the manager (existence
  check + bounded retries) and ultimately by storage (`save` is insert-if-absent).
- `generate_code` is the facade the manager uses by default.
"""

import random
import string
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

CODE_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits


class BaseStrategy(ABC):
    """Abstract base for code generation strategies."""

    @abstractmethod
    def generate(self, min_length: int, max_length: int) -> str:  # pragma: no cover
        raise NotImplementedError


@dataclass(frozen=True)
class RandomStrategy(BaseStrategy):
    """Independent random draw per call, backed by the OS CSPRNG."""

    alphabet: str = CODE_ALPHABET
    _rng: random.SystemRandom = field(default_factory=random.SystemRandom, repr=False, compare=False)

    def generate(self, min_length: int, max_length: int) -> str:
        if min_length <= 0 or max_length < min_length:
            raise ValueError("invalid range")
        length = self._rng.randint(min_length, max_length)
        return "".join(self._rng.choice(self.alphabet) for _ in range(length))


_default_strategy = RandomStrategy()


def generate_code(min_length: int, max_length: int) -> str:
    """Facade used by the rest of the app."""
    return _default_strategy.generate(min_length, max_length)
