"""Exchange transports: push feed, pollers, HTTP adapter and simulator."""
