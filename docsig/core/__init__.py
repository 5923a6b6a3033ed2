"""Configuration, logging, errors and signature primitives."""
