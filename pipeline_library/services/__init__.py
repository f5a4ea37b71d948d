"""Service layer: stage library, validators, seed rules and pipeline orchestration."""
