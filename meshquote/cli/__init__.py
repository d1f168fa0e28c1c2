"""Command-line interface for MeshQuote."""
