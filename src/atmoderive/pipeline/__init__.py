"""Plan resolution and execution.

- cookbook: candidate recipes per variable
- resolver: cookbook search producing a Plan
- plan: immutable execution order
- executor: NL/TL/AD execution
- deriver: facade tying it together
"""

from atmoderive.pipeline.cookbook import Cookbook
from atmoderive.pipeline.deriver import Deriver
from atmoderive.pipeline.executor import Executor
from atmoderive.pipeline.plan import Plan
from atmoderive.pipeline.resolver import Resolver

__all__ = ['Cookbook', 'Deriver', 'Executor', 'Plan', 'Resolver']
