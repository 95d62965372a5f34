"""Vanity public key search.

Brute-forces keypairs until the bech32 public key starts with
``npub1<prefix>``. Key generation is CPU bound, so the search runs in a
``multiprocessing`` pool: every worker generates keys in a tight loop, adds
to a shared counter in batches, and polls a shared stop event that is set on
the first match or on Ctrl+C. The parent only waits and reports progress.

Each extra prefix character multiplies the expected work by 32.

Examples:
    ```python
    result = search("ace", workers=4)
    if result is not None:
        print(result.npub, result.nsec)
    ```
"""

from __future__ import annotations

import multiprocessing
import os
import signal
import time
from typing import TYPE_CHECKING, Any, NamedTuple

from nostr_sdk import Keys

from nostaro.core.logger import Logger


if TYPE_CHECKING:
    from collections.abc import Callable


BECH32_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
NPUB_HRP = "npub1"

# Keys generated between shared-counter updates and stop-flag checks
_BATCH = 500

# Worker-process globals, set by the pool initializer
_counter: Any = None
_stop: Any = None

logger = Logger("vanity")


class VanityResult(NamedTuple):
    """A matching keypair and the search effort it took."""

    npub: str
    nsec: str
    public_key_hex: str
    tried: int
    elapsed: float


def validate_prefix(prefix: str) -> str:
    """Return *prefix* lowercased, or raise if it cannot appear after ``npub1``.

    Raises:
        ValueError: If *prefix* is empty or has a non-bech32 character.
    """
    prefix = prefix.strip().lower().removeprefix(NPUB_HRP)
    if not prefix:
        raise ValueError("Prefix must not be empty")
    for ch in prefix:
        if ch not in BECH32_CHARSET:
            raise ValueError(f"Invalid bech32 character '{ch}'. Allowed: {BECH32_CHARSET}")
    return prefix


def expected_attempts(prefix: str) -> int:
    return 32 ** len(prefix)


def _init_worker(counter: Any, stop: Any) -> None:
    global _counter, _stop  # noqa: PLW0603
    # Ctrl+C is handled by the parent, which sets the stop event
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    _counter = counter
    _stop = stop


def _search_worker(target: str) -> tuple[str, str, str] | None:
    """Generate keys until one matches *target* or the stop event is set."""
    while not _stop.is_set():
        for _ in range(_BATCH):
            keys = Keys.generate()
            npub = keys.public_key().to_bech32()
            if npub.startswith(target):
                _stop.set()
                with _counter.get_lock():
                    _counter.value += 1
                return npub, keys.secret_key().to_bech32(), keys.public_key().to_hex()
        with _counter.get_lock():
            _counter.value += _BATCH
    return None


def search(
    prefix: str,
    workers: int | None = None,
    *,
    progress: Callable[[int, float], None] | None = None,
    interval: float = 1.0,
) -> VanityResult | None:
    """Search for a key whose npub starts with ``npub1<prefix>``.

    Args:
        prefix: Desired characters after ``npub1``.
        workers: Worker processes (default: CPU count).
        progress: Called with ``(tried, elapsed)`` every *interval* seconds.
        interval: Seconds between progress callbacks.

    Returns:
        The match, or ``None`` when interrupted with Ctrl+C.

    Raises:
        ValueError: If *prefix* is invalid.
        Exception: Whatever a worker raised, when no worker found a match.
    """
    prefix = validate_prefix(prefix)
    target = NPUB_HRP + prefix
    workers = max(1, workers or os.cpu_count() or 4)

    ctx = multiprocessing.get_context()
    counter = ctx.Value("Q", 0)
    stop = ctx.Event()

    logger.info("vanity_search_started", prefix=prefix, workers=workers)
    start = time.monotonic()
    found: tuple[str, str, str] | None = None

    with ctx.Pool(workers, initializer=_init_worker, initargs=(counter, stop)) as pool:
        results = [pool.apply_async(_search_worker, (target,)) for _ in range(workers)]
        try:
            while not stop.wait(interval):
                if progress is not None:
                    progress(counter.value, time.monotonic() - start)
                # Workers that died with an error never set the stop event
                if all(r.ready() for r in results):
                    break
        except KeyboardInterrupt:
            stop.set()
            logger.info("vanity_search_cancelled", tried=counter.value)
        failure: Exception | None = None
        for r in results:
            try:
                value = r.get()
            except Exception as e:  # noqa: BLE001
                logger.warning("vanity_worker_failed", error=str(e))
                failure = failure or e
                continue
            if value is not None and found is None:
                found = value

    elapsed = time.monotonic() - start
    if found is None:
        if failure is not None:
            raise failure
        return None

    npub, nsec, pk_hex = found
    logger.info("vanity_search_found", prefix=prefix, tried=counter.value, elapsed=round(elapsed, 2))
    return VanityResult(npub, nsec, pk_hex, counter.value, elapsed)
