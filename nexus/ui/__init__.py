"""Terminal rendering for conversation snapshots."""
