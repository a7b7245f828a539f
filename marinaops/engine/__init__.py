"""Computation layer: metrics aggregation, data-source control and sample data."""
