"""Developer tooling (opt-in debug timing)."""
