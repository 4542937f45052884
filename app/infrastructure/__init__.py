"""Infrastructure: stores, caches, counters, security and sinks."""
