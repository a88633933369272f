"""Current user profile, stats and milestones."""
