"""Application layer: settings, timers, and the composition root."""
