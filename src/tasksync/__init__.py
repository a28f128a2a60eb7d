"""Offline-first task sync core: versioned store, delta sync, batches."""
