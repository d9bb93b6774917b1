"""`atmoderive` - derivation of atmospheric variables through recipe plans.

Subpackages:
- core: field store, recipe interface, registry
- recipes: built-in recipes
- pipeline: cookbook, resolver, plan, executor, Deriver facade
- schemas: configuration (pydantic)
- contracts: failure taxonomy and stage invariants
"""

__version__ = "0.1.0"
