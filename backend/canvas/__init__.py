"""Canvas graph engine package.

Subpackages:
- engine: Graph store, connection validation, node operations, clipboard and
  debounced persistence
- nodes: Node-kind registry (default data, compatibility rules, renderer metadata)

Modules:
- session: Composition root wiring one project's engine together
- client: Async HTTP client for the project service
- collaborators: Collaborator protocols and logging-backed implementations
"""
