"""Output layer — renders Result values for the CLI."""
