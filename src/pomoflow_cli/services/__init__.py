"""Services for Pomoflow CLI."""
