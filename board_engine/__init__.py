"""Board engine: AAC board IR, editor session and persistence."""
