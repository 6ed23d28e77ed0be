"""Agency workflow and sequence assignment engine."""
