"""Bounded-retry line sampling.

Each pick draws a line number, reads it, and redraws while the text is
excluded or the line number was already used in this call. After
``max_attempts`` draws the last one is accepted as-is, so a request never fails
or hangs, at the price of a possible repeat or excluded value when the
constraints cannot be met (for example more picks than eligible lines).

In SEEDED mode every draw is ``seed % line_count``: the same seed reproduces
the same choice, and picks after the first repeat that line once attempts run
out.
"""

from __future__ import annotations

import random
from collections.abc import Callable

from lazywild.config.constants import MAX_SAMPLE_ATTEMPTS
from lazywild.core.logging import get_logger
from lazywild.index.models import SampleRequest, SelectionMode
from lazywild.index.reader import LineReader

log = get_logger("index.sampler")

ParseFn = Callable[[str], str]


def _identity(text: str) -> str:
    return text


def draw_line_number(
    line_count: int,
    mode: SelectionMode,
    seed: int,
    rng: random.Random,
) -> int:
    """Pick a line number in ``[0, line_count)``."""
    if mode is SelectionMode.SEEDED:
        return seed % line_count
    return rng.randrange(line_count)


def sample(
    reader: LineReader,
    request: SampleRequest,
    *,
    parse: ParseFn | None = None,
    rng: random.Random | None = None,
    max_attempts: int = MAX_SAMPLE_ATTEMPTS,
) -> str:
    """Draw ``request.count`` lines and join them with ``request.separator``.

    Args:
        reader: Line source for one index.
        request: Count, separator, exclusions and selection mode.
        parse: Applied to every accepted line before joining, typically the
            host's recursive prompt parser. Identity when omitted.
        rng: Random source for RANDOM mode. A fresh one is used when omitted.
        max_attempts: Draws per pick before the last draw is accepted.

    Returns:
        The joined, trimmed picks, or "" when the index has no lines.
    """
    line_count = reader.line_count
    if line_count == 0 or request.count <= 0:
        return ""

    parse = parse or _identity
    rng = rng or random.Random()
    max_attempts = max(1, max_attempts)
    used: set[int] = set()
    picks: list[str] = []

    for _ in range(request.count):
        attempts = 0
        while True:
            line_number = draw_line_number(line_count, request.mode, request.seed, rng)
            choice = reader.read(line_number)
            attempts += 1
            if choice not in request.exclude and line_number not in used:
                break
            if attempts >= max_attempts:
                log.debug(
                    "sample_attempts_exhausted",
                    key=reader.index.key,
                    attempts=attempts,
                    line=line_number,
                    excluded=choice in request.exclude,
                    repeated=line_number in used,
                )
                break

        used.add(line_number)
        picks.append(parse(choice).strip())

    return request.separator.join(picks).strip()
