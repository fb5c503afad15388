"""Archive model, synchronization and search."""
