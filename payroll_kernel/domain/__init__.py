"""Pure domain layer: DTOs, clock and month-label calendar helpers."""
