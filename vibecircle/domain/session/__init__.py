"""Session lifecycle and per-user store bundles."""
