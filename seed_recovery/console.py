"""
Operator-facing output: tagged status lines and the inline progress bar.
"""

import datetime
import threading

from colorama import init as colorama_init, Fore, Style

from seed_recovery.config import ESTIMATE_CHECKS_PER_WORKER

colorama_init(autoreset=True)

BAR_WIDTH = 30
LINE_WIDTH = 120

# the progress line is rewritten in place; other lines must start on a fresh one
_lock = threading.Lock()
_inline_active = False


def _emit(line: str) -> None:
    global _inline_active
    with _lock:
        if _inline_active:
            print()
            _inline_active = False
        print(line, flush=True)


def info(msg: str) -> None:
    _emit(f"[INFO] {msg}")


def warn(msg: str) -> None:
    _emit(f"{Fore.RED}[WARN]{Style.RESET_ALL} {msg}")


def found(msg: str) -> None:
    _emit(f"{Fore.CYAN}[FOUND]{Style.RESET_ALL} {msg}")


def done(msg: str) -> None:
    _emit(f"[DONE] {msg}")


_UNITS = (("d", 86400), ("h", 3600), ("m", 60), ("s", 1))


def format_time(s: float) -> str:
    """Two most significant units: 5s, 1m05s, 3h02m, 2d01h."""
    if s == float("inf"):
        return "inf"
    rest = int(s)
    parts = []
    for suffix, size in _UNITS:
        value, rest = divmod(rest, size)
        if value or parts or suffix == "s":
            parts.append((value, suffix))
    head, tail = parts[0], parts[1:2]
    return f"{head[0]}{head[1]}" + "".join(f"{v:02d}{u}" for v, u in tail)


def estimate_duration(total: int, workers: int) -> float:
    """Seconds needed for total checks at the nominal per-worker rate."""
    return total / (ESTIMATE_CHECKS_PER_WORKER * max(1, workers))


def timestamp() -> str:
    return datetime.datetime.now().isoformat(timespec="seconds")


def _bar(pct: float) -> str:
    filled = min(BAR_WIDTH, int(pct / 100.0 * BAR_WIDTH))
    color = Fore.YELLOW if pct < 50 else Fore.GREEN
    return f"{color}[{'#' * filled:<{BAR_WIDTH}}] {pct:6.2f}%{Style.RESET_ALL}"


def print_progress_inline(checked: int, total: int, rate: float, elapsed: float, eta: float):
    """Rewrite the current line with the search progress; the next tagged line starts below it."""
    global _inline_active
    pct = checked / total * 100 if total > 0 else 0.0
    line = (f"{_bar(pct)} checked={checked:,}/{total:,} rate={rate:.1f}/s "
            f"elapsed={format_time(elapsed)} ETA={format_time(eta)}")
    with _lock:
        print("\r" + line.ljust(LINE_WIDTH), end="", flush=True)
        _inline_active = True
