"""Discovery matches: scoring, daily queue and resolution."""
