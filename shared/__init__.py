"""
Shared Kernel

Building blocks used by the scooters, reservations and payments contexts:
aggregates and value objects, domain errors, the unit of work and the
message bus, plus the encrypted model field.
"""
