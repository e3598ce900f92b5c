"""Listen normalization, import and aggregation engine."""
