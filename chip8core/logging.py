"""Console logging utilities for the CHIP-8 core and its host tools.

Provides a small levelled console logger and a real-time tqdm progress bar
for JAX scans, updated from inside compiled code through ``io_callback``.
"""

import time
import sys
from typing import Any, Dict, Optional, Callable, Tuple

import jax
from jax.experimental import io_callback

from tqdm import tqdm


class ConsoleLogger:
    """Levelled console logger with optional colours and elapsed timestamps."""

    LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        name: str = "chip8core",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
    ):
        self.name = name
        self.log_level = log_level.upper()
        if self.log_level not in self.LEVELS:
            raise ValueError(f"Unknown log level '{log_level}'. Available: {list(self.LEVELS)}")
        self.use_colors = (
            use_colors and hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
        )
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def _should_log(self, level: str) -> bool:
        return self.LEVELS.index(level.upper()) >= self.LEVELS.index(self.log_level)

    def _format_message(self, level: str, message: str) -> str:
        """Format log message with timestamp, level, and colors."""
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        if self.use_colors:
            level_str = f"{self.COLORS[level]}{level_str}{self.RESET}"
        return f"{timestamp}{level_str}[{self.name}] {message}"

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        level = level.upper()
        if self._should_log(level):
            print(self._format_message(level, message), flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


class RunLogger(ConsoleLogger):
    """Logger for headless ROM runs: configuration banner and final summary."""

    def __init__(self, name: str = "run", **kwargs):
        super().__init__(name, **kwargs)

    def log_run_start(self, config: Dict[str, Any]):
        self.info("=" * 60)
        self.info("Running ROM with configuration:")
        for key, value in config.items():
            self.info(f"  {key}: {value}")
        self.info("=" * 60)

    def log_run_end(self, summary: Dict[str, Any]):
        elapsed = time.time() - self.start_time
        self.info("=" * 60)
        self.info(f"Run finished in {elapsed:.2f}s")
        for key, value in summary.items():
            if isinstance(value, float):
                self.info(f"  {key}: {value:.4f}")
            else:
                self.info(f"  {key}: {value}")
        self.info("=" * 60)


def build_tqdm_progress_bar(
    n: int,
    print_rate: Optional[int] = None,
    desc: Optional[str] = None,
    **kwargs,
) -> Tuple[Callable, Callable]:
    """Build a tqdm progress bar that can be driven from traced code.

    Returns ``(update, close)``: ``update(iter_num)`` is called at the top of
    every scan iteration, ``close(result, iter_num)`` at the bottom.
    """
    if desc is None:
        desc = f"Emulating ({n:,} frames)"

    for kwarg in ("total", "mininterval", "maxinterval", "miniters"):
        kwargs.pop(kwarg, None)

    bars = {}

    if print_rate is None:
        print_rate = max(1, min(n // 20, 50))
    else:
        print_rate = max(1, min(print_rate, n))

    remainder = n % print_rate

    def _open():
        bars[0] = tqdm(total=n, desc=desc, unit="frame", **kwargs)

    def _advance(steps):
        if 0 in bars:
            bars[0].update(int(steps))

    def _close():
        if 0 in bars:
            bars.pop(0).close()

    def update(iter_num):
        jax.lax.cond(
            iter_num == 0,
            lambda: io_callback(_open, None, ordered=True),
            lambda: None,
        )
        jax.lax.cond(
            (iter_num + 1) % print_rate == 0,
            lambda: io_callback(_advance, None, print_rate, ordered=True),
            lambda: None,
        )
        if remainder:
            jax.lax.cond(
                iter_num == n - 1,
                lambda: io_callback(_advance, None, remainder, ordered=True),
                lambda: None,
            )

    def close(result, iter_num):
        jax.lax.cond(
            iter_num == n - 1,
            lambda: io_callback(_close, None, ordered=True),
            lambda: None,
        )
        return result

    return update, close


def scan_with_progress(
    n: int,
    print_rate: Optional[int] = None,
    desc: Optional[str] = None,
    **tqdm_kwargs,
) -> Callable:
    """Decorator adding a real-time progress bar to a ``jax.lax.scan`` body.

    The scanned ``xs`` must be the iteration index (or a tuple starting
    with it).
    """
    update, close = build_tqdm_progress_bar(n, print_rate, desc, **tqdm_kwargs)

    def decorator(func):
        def wrapper(carry, x):
            iter_num = x[0] if isinstance(x, tuple) else x
            update(iter_num)
            result = func(carry, x)
            return close(result, iter_num)

        return wrapper

    return decorator
