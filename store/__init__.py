"""
Entity store package.

The control core never owns persistent storage; it talks to an external
store through the EntityStore protocol. InMemoryEntityStore is a reference
implementation used for demos and tests.
"""

__all__ = ['EntityStore', 'InMemoryEntityStore', 'JOB', 'MACHINE', 'WORKER']
