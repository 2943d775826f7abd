"""Cross-cutting configuration, logging, metrics and wiring."""
