"""Core building blocks: errors, configuration, project analysis and commit metadata."""
