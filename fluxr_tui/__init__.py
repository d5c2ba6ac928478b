"""Terminal board for Fluxr."""
