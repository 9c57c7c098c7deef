"""Library scanning and storage access."""
