"""Entity resolution and serialization engine."""
