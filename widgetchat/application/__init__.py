"""
Application layer.

Use-case services that coordinate the core pipeline components with the
persistence boundary.
"""
