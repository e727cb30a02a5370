"""CSV export pipeline: windows, query building and validation, streaming writer."""
