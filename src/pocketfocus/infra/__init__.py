"""Infrastructure adapters: database, repositories, scheduling and audio."""
