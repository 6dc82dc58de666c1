"""Wire models, codec and level aggregation."""
