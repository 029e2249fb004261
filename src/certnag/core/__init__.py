"""Core primitives: enums, clock, serial helpers."""
