"""Core policy layer: provider capabilities and selection."""
