"""Room-scoped YouTube playback synchronisation."""
