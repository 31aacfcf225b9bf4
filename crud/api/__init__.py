"""HTTP controllers rendering htmx fragments."""
