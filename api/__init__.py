"""HTTP API package for DocInsight."""
