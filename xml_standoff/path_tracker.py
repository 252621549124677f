"""
Tracks the path of currently open elements.

The document element is named after the document id, so paths read
docid/child/grandchild. Without an id the document element keeps its own name.
"""


class PathTracker:

    def __init__(self, root=""):
        self.root = root
        self._names = []

    def reset(self, root=""):
        self.root = root
        self._names = []

    def push(self, name):
        """Enter element name and return its path."""
        self._names.append(name)
        return self.path

    def pop(self):
        """Leave the innermost element and return the path of its parent."""
        if self._names:
            self._names.pop()
        return self.path

    @property
    def depth(self):
        return len(self._names)

    @property
    def path(self):
        if not self._names:
            return self.root
        return "/".join([self.root or self._names[0]] + self._names[1:])

    def __repr__(self):
        return f"PathTracker({self.path!r})"
