"""Pure ledger computations."""
