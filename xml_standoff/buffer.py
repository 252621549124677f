"""Append-only output buffer holding the normalized text of one document."""

import re

_TRAILING_WORD = re.compile(r'\S*\Z')


class OutputBuffer:
    """
    Append-only text buffer.

    Chunks are kept as a list and only joined on demand; the running length is
    what span offsets are taken from.
    """

    def __init__(self):
        self._chunks = []
        self._length = 0

    def append(self, chunk):
        if not chunk:
            return
        self._chunks.append(chunk)
        self._length += len(chunk)

    def __len__(self):
        return self._length

    def last_char(self):
        """Return the last character in the buffer, or "" if it is empty."""
        if not self._chunks:
            return ""
        return self._chunks[-1][-1]

    def last_word(self):
        """Return the trailing run of non-whitespace characters."""
        parts = []
        for chunk in reversed(self._chunks):
            m = _TRAILING_WORD.search(chunk)
            parts.append(m.group())
            if m.start() > 0:
                break
        return "".join(reversed(parts))

    def getvalue(self):
        if len(self._chunks) > 1:
            self._chunks = ["".join(self._chunks)]
        return self._chunks[0] if self._chunks else ""

    def __str__(self):
        return self.getvalue()

    def __repr__(self):
        return f"OutputBuffer(length={self._length})"
