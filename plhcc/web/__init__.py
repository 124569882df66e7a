"""HTTP API for imports and exports."""
