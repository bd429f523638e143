"""Service layer: business rules over the entity store."""
