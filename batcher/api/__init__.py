"""HTTP service for the batcher."""
