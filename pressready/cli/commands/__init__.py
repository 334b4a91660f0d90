"""Sub-command modules for the pressready CLI."""
