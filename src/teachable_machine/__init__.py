"""Online transfer learning: collect examples, train a head, classify live."""

__version__ = "0.0.1"
