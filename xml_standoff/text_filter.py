"""
Text normalization applied to XML character data before it reaches the output buffer.

The filter rewrites each chunk with an ordered list of regex rules, suppresses
whitespace collisions at the join point and, when an inline marker sat between
two word fragments, asks a split decision policy whether the fragments are one
word or two.
"""

import logging
import re
from typing import Protocol

from .errors import ConfigurationError

# newlines to spaces, then collapse whitespace runs
DEFAULT_RULES = (
    r'\n', ' ',
    r'\s+', ' ',
)


class SplitDecision(Protocol):
    """Policy deciding whether a space separates two fragments around a marker."""

    def decide(self, preceding_word: str, following_word: str, mark: str) -> bool: ...


class NeverSplit:
    """Always join fragments: the marker was a layout artifact inside a word."""

    def decide(self, preceding_word, following_word, mark):
        return False


class AlwaysSplit:
    """Always separate fragments with a space."""

    def decide(self, preceding_word, following_word, mark):
        return True


class LexiconSplit:
    """
    Join fragments when the fused word is known, separate them otherwise.

    Surrounding punctuation is ignored when looking the fused word up.
    """

    def __init__(self, words, case_sensitive=False):
        self.case_sensitive = case_sensitive
        self.words = frozenset(self._key(w) for w in words if w.strip())

    def _key(self, word):
        word = re.sub(r'^\W+|\W+$', '', word.strip())
        return word if self.case_sensitive else word.lower()

    def decide(self, preceding_word, following_word, mark):
        return self._key(preceding_word + following_word) not in self.words


class _CallableSplitDecision:

    def __init__(self, fun):
        self.fun = fun

    def decide(self, preceding_word, following_word, mark):
        return bool(self.fun(preceding_word, following_word, mark))


def _pair_rules(rules):
    """
    Turn a rule configuration into a list of (pattern, replacement) pairs.

    Accepts either a flat name/value list or a sequence of 2-tuples.
    """
    rules = list(rules or [])
    if rules and all(isinstance(r, (tuple, list)) for r in rules):
        for r in rules:
            if len(r) != 2:
                raise ConfigurationError(f"rewrite rule must be a (pattern, replacement) pair, got {r!r}")
        return [tuple(r) for r in rules]
    if len(rules) % 2 != 0:
        raise ConfigurationError(
            "rewrite rules must come in pattern/replacement pairs but found an odd "
            f"number of entries: [{len(rules)}]"
        )
    return list(zip(rules[0::2], rules[1::2]))


class TextFilter:
    """
    Normalizes text chunks and appends them to an output buffer.

    Holds compiled rules and the split policy only, so one instance can serve
    several builders.

    Args:
        rules: ordered rewrite rules, either flat [pattern, repl, ...] or (pattern, repl) pairs
        whitespace_collisions: drop a leading whitespace character when the buffer
            already ends with whitespace (or is empty)
        split_decision: object with decide(preceding, following, mark), or a plain
            callable with the same signature
    """

    def __init__(self, rules=DEFAULT_RULES, whitespace_collisions=True, split_decision=None):
        self.rules = []
        for pattern, replacement in _pair_rules(rules):
            try:
                self.rules.append((re.compile(pattern), replacement))
            except re.error as e:
                raise ConfigurationError(f"invalid rewrite pattern {pattern!r}: {e}") from e
        self.whitespace_collisions = whitespace_collisions
        if split_decision is not None and not hasattr(split_decision, "decide"):
            split_decision = _CallableSplitDecision(split_decision)
        self.split_decision = split_decision

    def normalize(self, chunk):
        for pattern, replacement in self.rules:
            if not chunk:
                break
            chunk = pattern.sub(replacement, chunk)
        return chunk

    def append(self, buffer, chunk, split_mark=None):
        """
        Normalize chunk and append it to buffer (an OutputBuffer).

        split_mark is the pending inline marker, if any, recorded by the caller
        since the last append. Returns True when something was appended, that
        is when a pending mark has been consumed.
        """
        chunk = self.normalize(chunk)
        if not chunk:
            return False

        if split_mark is not None and self.split_decision is not None:
            preceding = buffer.last_word()
            following = re.split(r'\s', chunk, maxsplit=1)[0]
            if preceding and following:
                if self.split_decision.decide(preceding, following, split_mark):
                    logging.getLogger(__name__).debug(
                        "split %r | %r at mark %s", preceding, following, split_mark)
                    buffer.append(" ")

        if self.whitespace_collisions and chunk[0].isspace():
            last = buffer.last_char()
            if not last or last.isspace():
                chunk = chunk[1:]

        buffer.append(chunk)
        return True
