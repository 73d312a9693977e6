"""
Execution Adapter interface.

An executor runs a complete ExecutionPlan (result page, total count and
every facet) as one logical execution, so all of them see the same
matched population.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol

from search.plan import ExecutionPlan


@dataclass
class ExecutionResult:
    """
    Raw executor output.

    results: projected result page, already sorted and windowed
    total_count: size of the matched population (0 when nothing matched)
    facet_counts: facet key -> [{"id": value, "count": n}, ...]
    """
    results: List[Dict[str, Any]] = field(default_factory=list)
    total_count: int = 0
    facet_counts: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)


class SearchExecutor(Protocol):
    def execute(self, plan: ExecutionPlan) -> ExecutionResult:
        """
        Raises:
            SearchExecutionError: If the storage collaborator fails
        """
        ...
