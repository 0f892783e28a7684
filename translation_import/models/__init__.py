"""Translation tree model."""
