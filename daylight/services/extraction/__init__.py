"""Journal narrative to timeline event extraction."""
