"""Pure domain layer: DTOs, clock, entry validator, closing checks."""
