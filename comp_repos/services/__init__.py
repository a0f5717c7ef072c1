"""Services for comp-repos."""
