"""SQL-backed storage for cadenceplan."""
