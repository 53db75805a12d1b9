"""Infrastructure adapters: browser rendering, metadata lookup, storage."""
