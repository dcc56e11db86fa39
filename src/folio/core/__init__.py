"""Format parsers and the shared structure heuristics."""
