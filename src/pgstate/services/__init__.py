"""Service layer: one gateway per catalog object kind."""
