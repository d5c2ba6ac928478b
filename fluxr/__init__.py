"""Fluxr kanban board: item normalization, drag resolution and remote sync."""

__version__ = "0.1.0"
