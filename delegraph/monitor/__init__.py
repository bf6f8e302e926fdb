"""Terminal views of the execution graph.

Modules
-------
renderer
    ``GraphRenderer`` turns ``GraphSnapshot`` into Rich renderables,
    including animated replay through ``Rich.Live``.
"""
