"""Domain apps of the Scootal reservation core."""
