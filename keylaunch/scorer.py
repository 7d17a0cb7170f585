"""Fuzzy, typo-tolerant scoring of a query against candidate text."""

# Returned for "not a match"; callers drop such candidates.
NO_MATCH = -1_000_000

BOUNDARY_CHARS = frozenset(" -_./")

# Tier bonuses. Each tier must beat the best total of the tier below it,
# including the substring bonuses (at most 1000 + 200 + 80 + 60).
EXACT_BONUS = 9000
EXACT_IGNORE_CASE_BONUS = 8600
PREFIX_BONUS = 8200
SUBSTRING_BONUS = 7800

TYPO_WINDOW_BASE = 7700
TYPO_WINDOW_AT_START = 7950
TYPO_WHOLE_TEXT = 7600
TYPO_OFFSET_PENALTY_CAP = 120

HOME_EXACT_BONUS = 600
HOME_PREFIX_BONUS = 400


def is_word_boundary(text: str, idx: int) -> bool:
    """Return True if ``idx`` starts a token in ``text``."""
    if idx <= 0:
        return True
    return text[idx - 1] in BOUNDARY_CHARS


def within_one_edit(a: str, b: str) -> bool:
    """Check whether ``a`` and ``b`` differ by at most one insert, delete or substitution.

    Uses a single two-pointer pass; only distance <= 1 matters so no DP table
    is built.
    """
    m, n = len(a), len(b)
    if abs(m - n) > 1:
        return False
    i = j = edits = 0
    while i < m and j < n:
        if a[i] == b[j]:
            i += 1
            j += 1
            continue
        edits += 1
        if edits > 1:
            return False
        if m == n:
            i += 1
            j += 1
        elif m < n:
            j += 1
        else:
            i += 1
    edits += (m - i) + (n - j)
    return edits <= 1


def within_one_transposition(a: str, b: str) -> bool:
    """Check whether ``b`` is ``a`` with exactly one pair of adjacent characters swapped."""
    if len(a) != len(b) or len(a) < 2:
        return False
    k = 0
    while k < len(a) and a[k] == b[k]:
        k += 1
    if k >= len(a) - 1:
        return False
    if not (a[k] == b[k + 1] and a[k + 1] == b[k]):
        return False
    return a[k + 2:] == b[k + 2:]


def _close_enough(query: str, segment: str) -> bool:
    return within_one_edit(query, segment) or within_one_transposition(query, segment)


def _typo_score(lq: str, lt: str) -> int:
    """Score a near miss, or NO_MATCH when even one typo does not explain it."""
    if len(lq) < 2:
        return NO_MATCH

    for size in (max(1, len(lq) - 1), len(lq), len(lq) + 1):
        if size > len(lt):
            continue
        for start in range(len(lt) - size + 1):
            if _close_enough(lq, lt[start:start + size]):
                base = TYPO_WINDOW_AT_START if start == 0 else TYPO_WINDOW_BASE
                return base - min(TYPO_OFFSET_PENALTY_CAP, start)

    if _close_enough(lq, lt):
        return TYPO_WHOLE_TEXT
    return NO_MATCH


def score(query: str, text: str, full_path: str = "", home: str = "") -> int:
    """Score ``query`` against ``text``.

    Tiers, best first: exact match, case-insensitive exact match, prefix,
    substring, then a single typo (one edit or one adjacent transposition).

    Args:
        query: What the user typed (after command prefix stripping)
        text: Candidate text, e.g. an application name or a file basename
        full_path: Full path of the candidate for file results, else empty
        home: Home directory used for the locality bonus, else empty

    Returns:
        Score (higher is better), or NO_MATCH. An empty query always matches
        with score 0.
    """
    if not query:
        return 0

    lq = query.lower()
    lt = text.lower()
    pos = lt.find(lq)

    if pos >= 0:
        s = 1000
        if pos == 0:
            s += 200
        if is_word_boundary(lt, pos):
            s += 80
        s += max(0, 60 - (len(text) - len(query)))

        if text == query:
            s += EXACT_BONUS
        elif lt == lq:
            s += EXACT_IGNORE_CASE_BONUS
        elif pos == 0:
            s += PREFIX_BONUS
        else:
            s += SUBSTRING_BONUS
    else:
        s = _typo_score(lq, lt)
        if s == NO_MATCH:
            return NO_MATCH

    if home and full_path.startswith(home.rstrip("/") + "/"):
        if lt == lq:
            s += HOME_EXACT_BONUS
        elif lt.startswith(lq):
            s += HOME_PREFIX_BONUS
    return s


def is_match(value: int) -> bool:
    return value > NO_MATCH
