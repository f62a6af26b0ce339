"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named constants (earth radius, unit conversions, source names)
- exceptions: Custom exception hierarchy
- ingress: HTTP body parsing and error mapping for the Functions entrypoint
"""
