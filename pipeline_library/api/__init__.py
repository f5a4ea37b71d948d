"""HTTP API of the pipeline library."""
