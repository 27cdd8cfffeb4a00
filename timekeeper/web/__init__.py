"""HTTP interface for the timeline service."""
