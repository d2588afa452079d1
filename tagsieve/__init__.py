"""tagsieve - regex rule filtering for notmuch mail."""

__version__ = "0.1.0"
