"""
Telemetry broadcasting: per-connection topic timers and log streams.
"""
# Modules are imported where needed to avoid circular imports with the
# application factory.
