"""Reactive orchestration engine: event loop, commands, timers and overlays.

Nothing in this package knows about books or GraphQL. Screens and the root
controller are built on top of these primitives.
"""
