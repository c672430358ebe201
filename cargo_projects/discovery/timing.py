"""Build-time estimation from cargo's ``--timings`` reports.

The estimator is a black box to the rest of the system: it returns whole
seconds, or 0 when nothing is known.  It never raises and never blocks
beyond its subprocess timeout.

Lookup order:

1. ``target/.build-time-cache`` (seconds, written by a previous estimate)
2. newest ``target/cargo-timings/*.html`` report's "Total time" cell
3. only when enabled: run ``cargo check --timings`` and retry step 2
"""

from __future__ import annotations

import re
import subprocess
from pathlib import Path

from loguru import logger

CACHE_FILE = ".build-time-cache"
TIMINGS_DIR = "cargo-timings"

_TOTAL_TIME_RE = re.compile(r"<td>\s*Total time:\s*</td>\s*<td>(?P<value>[^<]+)</td>", re.IGNORECASE)
_DURATION_TOKEN_RE = re.compile(r"(?P<amount>\d+(?:\.\d+)?)\s*(?P<unit>ms|h|m|s)\b")
_UNIT_SECONDS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_duration(text: str) -> int | None:
    """Parse ``"12.3s"``, ``"1m 5.2s"`` or ``"2h 3m"`` into whole seconds.

    Cargo repeats long totals in another unit, as in ``"94.6s (1m 34.6s)"``;
    only the part before the parenthesis is read.
    """
    tokens = list(_DURATION_TOKEN_RE.finditer(text.split("(", 1)[0]))
    if not tokens:
        return None
    total = sum(float(t["amount"]) * _UNIT_SECONDS[t["unit"]] for t in tokens)
    return int(total)


def parse_timings_report(html: str) -> int | None:
    match = _TOTAL_TIME_RE.search(html)
    return parse_duration(match["value"]) if match else None


class BuildTimeEstimator:
    """Callable ``(project_path) -> seconds`` with an on-disk cache."""

    def __init__(
        self,
        *,
        run_cargo_check: bool = False,
        cache: bool = True,
        cargo_bin: str = "cargo",
        timeout: float = 600.0,
    ) -> None:
        self.run_cargo_check = run_cargo_check
        self.cache = cache
        self.cargo_bin = cargo_bin
        self.timeout = timeout

    def __call__(self, project_path: Path) -> int:
        cached = self._read_cache(project_path)
        if cached is not None:
            return cached

        seconds = self._latest_report(project_path)
        if seconds is None and self.run_cargo_check and self._cargo_check(project_path):
            seconds = self._latest_report(project_path)
        if not seconds:
            return 0

        if self.cache:
            self._write_cache(project_path, seconds)
        return seconds

    def clear_cache(self, project_path: Path) -> bool:
        """Delete the cached estimate.  Returns whether a cache file existed."""
        cache_file = project_path / "target" / CACHE_FILE
        try:
            cache_file.unlink()
        except FileNotFoundError:
            return False
        return True

    # -- Sources ---------------------------------------------------------------

    def _read_cache(self, project_path: Path) -> int | None:
        cache_file = project_path / "target" / CACHE_FILE
        try:
            value = int(cache_file.read_text(encoding="utf-8").strip())
        except (OSError, ValueError):
            return None
        return value if value > 0 else None

    def _write_cache(self, project_path: Path, seconds: int) -> None:
        target_dir = project_path / "target"
        if not target_dir.is_dir():
            return
        try:
            (target_dir / CACHE_FILE).write_text(str(seconds), encoding="utf-8")
        except OSError as exc:
            logger.debug("Timing: could not cache build time for {}: {}", project_path, exc)

    def _latest_report(self, project_path: Path) -> int | None:
        timings_dir = project_path / "target" / TIMINGS_DIR
        try:
            reports = [p for p in timings_dir.iterdir() if p.suffix == ".html"]
        except OSError:
            return None
        if not reports:
            return None

        latest = max(reports, key=_mtime)
        try:
            return parse_timings_report(latest.read_text(encoding="utf-8", errors="replace"))
        except OSError:
            return None

    def _cargo_check(self, project_path: Path) -> bool:
        logger.info("Timing: running cargo check --timings in {}", project_path)
        try:
            proc = subprocess.run(  # noqa: S603
                [self.cargo_bin, "check", "--timings"],
                cwd=project_path,
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.warning("Timing: cargo check failed in {}: {}", project_path, exc)
            return False
        return proc.returncode == 0


def _mtime(path: Path) -> float:
    try:
        return path.stat().st_mtime
    except OSError:
        return 0.0
