"""HTTP API for abstract review and reviewer assignment."""
