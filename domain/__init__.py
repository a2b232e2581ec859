"""Pure domain model for the land registry: entities, rules and errors."""
