"""Per-call client identity for outbound upstream requests."""

import random
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class Fingerprint:
    """Opaque identity strings attached to one upstream call."""

    user_agent: str
    source_ip: str


class FingerprintGenerator:
    """Pick a user agent and a random source IP for each upstream call."""

    def __init__(
        self, user_agents: Sequence[str], rng: Optional[random.Random] = None
    ) -> None:
        if not user_agents:
            raise ValueError("at least one user agent is required")
        self._user_agents = tuple(user_agents)
        self._rng = rng or random.Random()

    def random_ip(self) -> str:
        return ".".join(str(self._rng.randrange(255)) for _ in range(4))

    def generate(self) -> Fingerprint:
        return Fingerprint(
            user_agent=self._rng.choice(self._user_agents),
            source_ip=self.random_ip(),
        )
