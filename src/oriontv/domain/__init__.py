"""Domain layer: session entities, value objects, ports and exceptions."""
