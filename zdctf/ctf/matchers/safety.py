"""
Static ReDoS pre-check for regex flags

Patterns are written by challenge authors and are not trusted. Before a
pattern is ever executed it is scanned token by token and rejected if it has
a construct known to cause catastrophic backtracking:

- nested repetition: a quantified group that itself contains a quantifier, e.g. ``(a+)+``
- alternation under a quantifier, e.g. ``(a|aa)*``
- stacked quantifiers, e.g. ``a{1,10}{1,10}``
- runs of unbounded wildcards, e.g. ``.*.*.*`` or ``(.*)(.*)(.*)``
- too long, too many quantifiers, or too deeply nested

The scan is deliberately conservative: a false positive only means the
author must rewrite the pattern.
"""

import re
from dataclasses import dataclass, field

from zdctf.config import settings

_BRACE_QUANTIFIER = re.compile(r"\{(\d*)(,?)(\d*)\}")


@dataclass
class SafetyReport:
    """Outcome of the static pre-check"""

    safe: bool
    violations: list[str] = field(default_factory=list)
    quantifiers: int = 0
    max_depth: int = 0

    def __bool__(self) -> bool:
        return self.safe


@dataclass
class _GroupFrame:
    has_quantifier: bool = False
    has_alternation: bool = False


def _quantifier_at(pattern: str, i: int) -> tuple[int, bool]:
    """Length of the quantifier starting at i (0 if none) and whether it is unbounded"""
    if i >= len(pattern):
        return 0, False
    c = pattern[i]
    if c in "*+":
        return 1, True
    if c == "?":
        return 1, False
    if c == "{":
        m = _BRACE_QUANTIFIER.match(pattern, i)
        if m and (m.group(1) or m.group(3)):
            unbounded = bool(m.group(2)) and not m.group(3)
            return m.end() - i, unbounded
    return 0, False


def _skip_class(pattern: str, i: int) -> int:
    """Index just past the character class opening at i"""
    n = len(pattern)
    j = i + 1
    if j < n and pattern[j] == "^":
        j += 1
    if j < n and pattern[j] == "]":
        j += 1
    while j < n and pattern[j] != "]":
        j += 2 if pattern[j] == "\\" else 1
    return min(j + 1, n)


def _skip_group_prefix(pattern: str, i: int) -> int:
    """Skip the ``?...`` extension after an opening parenthesis at i-1"""
    n = len(pattern)
    j = i + 1  # past "?"
    if j >= n:
        return j
    c = pattern[j]
    if c in ":=!>|":
        return j + 1
    if c == "<" and j + 1 < n and pattern[j + 1] in "=!":
        return j + 2
    if c == "#":
        # comment runs to the closing parenthesis, which pops the frame
        end = pattern.find(")", j)
        return n if end == -1 else end
    if c == "P" and j + 1 < n and pattern[j + 1] == "<":
        end = pattern.find(">", j)
        return n if end == -1 else end + 1
    if c == "P" and j + 1 < n and pattern[j + 1] == "=":
        end = pattern.find(")", j)
        return n if end == -1 else end
    if c == "<":
        end = pattern.find(">", j)
        return n if end == -1 else end + 1
    # inline flags: (?aiLmsux-imsx) or (?i:...)
    while j < n and (pattern[j].isalpha() or pattern[j] == "-"):
        j += 1
    if j < n and pattern[j] == ":":
        j += 1
    return j


def check_pattern_safety(
    pattern: str,
    max_length: int | None = None,
    max_quantifiers: int | None = None,
    max_nesting: int | None = None,
    max_wildcard_run: int | None = None,
) -> SafetyReport:
    """Statically scan a regex for catastrophic-backtracking constructs

    Args:
        pattern: The author supplied regular expression
        max_length: Longest accepted pattern (default REGEX_MAX_LENGTH)
        max_quantifiers: Most quantifiers accepted (default REGEX_MAX_QUANTIFIERS)
        max_nesting: Deepest parenthesis nesting accepted (default REGEX_MAX_NESTING)
        max_wildcard_run: Most adjacent unbounded wildcards accepted (default REGEX_MAX_WILDCARD_RUN)

    Returns:
        SafetyReport listing every violation found
    """
    max_length = max_length if max_length is not None else settings.REGEX_MAX_LENGTH
    max_quantifiers = (
        max_quantifiers
        if max_quantifiers is not None
        else settings.REGEX_MAX_QUANTIFIERS
    )
    max_nesting = max_nesting if max_nesting is not None else settings.REGEX_MAX_NESTING
    max_wildcard_run = (
        max_wildcard_run
        if max_wildcard_run is not None
        else settings.REGEX_MAX_WILDCARD_RUN
    )

    if len(pattern) > max_length:
        return SafetyReport(safe=False, violations=["pattern_too_long"])

    violations: set[str] = set()
    stack = [_GroupFrame()]
    depth = max_depth = 0
    quantifiers = 0
    wildcard_run = 0
    n = len(pattern)
    i = 0

    def consume_quantifier(pos: int, quantified_wildcard: bool) -> int:
        """Account for a quantifier at pos; return index past it and its modifier"""
        nonlocal quantifiers, wildcard_run
        q_len, unbounded = _quantifier_at(pattern, pos)
        quantifiers += 1
        pos += q_len
        lazy = pos < n and pattern[pos] == "?"
        if pos < n and pattern[pos] in "?+":
            pos += 1  # lazy or possessive modifier
        if quantified_wildcard and unbounded and not lazy:
            wildcard_run += 1
            if wildcard_run > max_wildcard_run:
                violations.add("wildcard_run")
        else:
            wildcard_run = 0
        # a quantifier applied to a quantifier
        while _quantifier_at(pattern, pos)[0]:
            violations.add("stacked_quantifier")
            quantifiers += 1
            pos += _quantifier_at(pattern, pos)[0]
        return pos

    while i < n:
        ch = pattern[i]

        if ch == "\\":
            i += 2
            wildcard_run = 0
            if _quantifier_at(pattern, i)[0]:
                stack[-1].has_quantifier = True
                i = consume_quantifier(i, quantified_wildcard=False)
            continue

        if ch == "[":
            i = _skip_class(pattern, i)
            wildcard_run = 0
            if _quantifier_at(pattern, i)[0]:
                stack[-1].has_quantifier = True
                i = consume_quantifier(i, quantified_wildcard=False)
            continue

        if ch == "(":
            depth += 1
            max_depth = max(max_depth, depth)
            stack.append(_GroupFrame())
            i += 1
            if i < n and pattern[i] == "?":
                i = _skip_group_prefix(pattern, i)
            continue

        if ch == ")":
            if len(stack) > 1:
                group = stack.pop()
                depth -= 1
            else:
                violations.add("unbalanced_parenthesis")
                group = _GroupFrame()
            i += 1
            if _quantifier_at(pattern, i)[0]:
                if group.has_quantifier:
                    violations.add("nested_repetition")
                if group.has_alternation:
                    violations.add("alternation_under_quantifier")
                stack[-1].has_quantifier = True
                i = consume_quantifier(i, quantified_wildcard=False)
            else:
                # a plain group is transparent to its parent
                stack[-1].has_quantifier |= group.has_quantifier
                stack[-1].has_alternation |= group.has_alternation
            continue

        if ch == "|":
            stack[-1].has_alternation = True
            wildcard_run = 0
            i += 1
            continue

        if _quantifier_at(pattern, i)[0]:
            # quantifier with nothing to repeat; the compiler rejects it
            violations.add("dangling_quantifier")
            i = consume_quantifier(i, quantified_wildcard=False)
            continue

        # plain atom
        i += 1
        if _quantifier_at(pattern, i)[0]:
            stack[-1].has_quantifier = True
            i = consume_quantifier(i, quantified_wildcard=ch == ".")
        else:
            wildcard_run = 0

    if len(stack) > 1:
        violations.add("unbalanced_parenthesis")
    if quantifiers > max_quantifiers:
        violations.add("too_many_quantifiers")
    if max_depth > max_nesting:
        violations.add("nesting_too_deep")

    return SafetyReport(
        safe=not violations,
        violations=sorted(violations),
        quantifiers=quantifiers,
        max_depth=max_depth,
    )
