"""Collection-layer view data model."""
