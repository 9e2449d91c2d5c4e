"""Domain layer: change events and repository protocols."""
