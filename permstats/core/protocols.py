"""
Core protocols for PermStats.

We use Protocol (structural typing) rather than ABC (nominal typing) so a
backend only has to look like a backend.
"""

from typing import Protocol, TypeVar, runtime_checkable

D = TypeVar('D', contravariant=True)  # Design type
P = TypeVar('P', covariant=True)      # Parameter payload type


@runtime_checkable
class Backend(Protocol[D, P]):
    """
    Protocol for computational backends.

    Each backend takes a frozen design and produces a Result envelope
    around its parameter payload. Backends are stateless: all
    configuration, including the random seed, lives on the design.

    Type Parameters:
        D: The design type this backend accepts
        P: The parameter payload type this backend produces
    """

    @property
    def name(self) -> str:
        """
        Backend identifier.

        Convention: '{device}_{algorithm}'
        Examples: 'cpu_permutation', 'cpu_stratified_permutation'
        """
        ...

    def solve(self, design: D) -> 'Result[P]':
        """
        Execute the statistical computation.

        Raises:
            ValidationError: If the design is invalid for this backend
            NumericalError: If numerical issues prevent a result
        """
        ...
