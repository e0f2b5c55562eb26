"""Local lookups: users/teams (SQLite) and the episode catalog (JSON)."""
