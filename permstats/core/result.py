"""
Generic result container for all PermStats computations.

The Result class provides a standardized envelope that all domain-specific
results use. Timing, diagnostics and non-fatal warnings travel with the
parameter payload instead of through a logger.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (sample sizes, reassembly order)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for statistical computations.

    Type Parameters:
        P: The domain-specific parameter payload type

    Attributes:
        params: Domain-specific parameters (observed statistic, null
            distribution, p-value, ...)
        info: Structured metadata (sample sizes, alternative, n_jobs)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=PermutationParams(...),
        ...     info={'n': 100, 'alternative': 'two.sided'},
        ...     timing={'total_seconds': 0.2, 'permutation_replicates': 0.19},
        ...     backend_name='cpu_permutation'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
