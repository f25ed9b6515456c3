"""Two-pass report batch: generate period reports, then render them to PDF."""
