"""Sliding-window replay detection for received ratchet counters."""

from dataclasses import dataclass, field


@dataclass
class ReplayWindow:
    """Tracks counters received from one peer.

    Attributes:
        window: How far below the highest counter a late message may arrive.
        peer_last_counter: The highest counter received from the peer.
        seen_counters: Counters seen inside the window.
    """

    window: int = 200
    peer_last_counter: int = -1
    seen_counters: set = field(default_factory=set)

    def is_acceptable(self, counter: int) -> bool:
        """Check an incoming counter against the window.

        Rejects counters that are negative, already seen, or too far
        behind the latest counter. Any future counter is accepted.
        """
        if counter < 0:
            return False

        if counter in self.seen_counters:
            return False

        if self.peer_last_counter >= 0:
            lower_bound = max(0, self.peer_last_counter - self.window)
            if counter < lower_bound:
                return False

        return True

    def record(self, counter: int) -> None:
        """Record a counter whose envelope authenticated."""
        self.seen_counters.add(counter)
        self.peer_last_counter = max(self.peer_last_counter, counter)

        lower_bound = max(0, self.peer_last_counter - self.window)
        self.seen_counters = {c for c in self.seen_counters if c >= lower_bound}
