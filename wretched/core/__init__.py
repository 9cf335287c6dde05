"""Session-level primitives shared by the auto-play driver and the CLI.

Nothing here touches redis; events are plain records a caller can log or store.
"""
