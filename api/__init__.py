"""ASGI entrypoints, one module-level ``app`` per deployable."""
