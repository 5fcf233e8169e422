"""Time-series sinks that accept batched point writes."""
