"""Core: constants, logging, error taxonomy, data types and configuration."""
