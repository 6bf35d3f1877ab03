"""Command groups for Pomoflow CLI."""
