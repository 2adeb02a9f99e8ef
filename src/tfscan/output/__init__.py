"""Report renderers: markdown comment, JSON, and Rich terminal."""
