"""HTTP layer: callable routes, health checks, error rendering."""
