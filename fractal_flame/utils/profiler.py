"""Lightweight wall-clock timing for render stages.

Provides:
    - timer(): context manager reporting elapsed seconds to a sink
    - Timings: dict-backed sink collecting stage durations for one render

Used to measure:
    - Chaos game (engine) pass
    - Tone mapping pass

No heavy dependencies (no line_profiler, no cProfile overhead).
"""

import time
from contextlib import contextmanager
from typing import Callable, Dict, Optional


@contextmanager
def timer(name: str, sink: Optional[Callable[[str, float], None]] = None):
    """Context manager for wall-clock timing.

    Parameters
    ----------
    name : str
        Timer name (for logging/display)
    sink : Optional[Callable[[str, float], None]]
        Optional callback(name, elapsed_seconds)
        If None, prints to stdout

    Examples
    --------
    >>> timings = Timings()
    >>> with timer("chaos_game", sink=timings):
    ...     stats = engine.run(histogram)
    >>> timings["chaos_game"]
    0.412...
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if sink is not None:
            sink(name, elapsed)
        else:
            print(f"{name}: {elapsed:.3f} s")


class Timings(dict):
    """Sink for ``timer`` that records the last duration per stage name."""

    def __call__(self, name: str, elapsed: float) -> None:
        self[name] = elapsed

    def total(self) -> float:
        return sum(self.values())

    def as_dict(self, ndigits: int = 4) -> Dict[str, float]:
        return {k: round(v, ndigits) for k, v in self.items()}
