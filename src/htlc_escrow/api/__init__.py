"""Read-only HTTP surface over the escrow read model."""
