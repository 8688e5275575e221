"""Hierarchical aggregation of node-link graphs."""
