"""
Solution wrappers for Monte Carlo results.

PermutationSolution, IndependentSamplesSolution and HybridSolution wrap
Result[P] and provide convenient accessors and summary output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray
from scipy import stats as sp_stats

from permstats.core.exceptions import DegenerateDistributionError
from permstats.core.result import Result
from permstats.montecarlo._common import (
    HybridParams,
    IndependentSamplesParams,
    PermutationParams,
)

if TYPE_CHECKING:
    from permstats.montecarlo.design import IndependentSamplesDesign, PermutationDesign


def format_p_value(p_value: float, R: int) -> str:
    """Render a Monte Carlo p-value; zero becomes the bound ``< 1/R``."""
    if p_value == 0.0:
        return f"< {1.0 / R:.4g}"
    return f"= {p_value:.4g}"


@dataclass
class PermutationSolution:
    """
    User-facing permutation test results.

    Provides observed statistic, permutation distribution, z-score and
    p-value. A p-value of exactly 0 is only known to be below 1/R; check
    ``p_value_is_bound`` before reporting it.
    """
    _result: Result[PermutationParams]
    _design: 'PermutationDesign'

    # --- Core fields ---

    @property
    def observed_stat(self) -> float:
        """Test statistic on original (unpermuted) data."""
        return self._result.params.observed_stat

    @property
    def perm_stats(self) -> NDArray[np.floating[Any]]:
        """Permutation distribution, shape (R,), in replicate order."""
        return self._result.params.perm_stats

    @property
    def mean(self) -> float:
        """Mean of the permutation distribution."""
        return self._result.params.mean

    @property
    def sd(self) -> float:
        """Standard deviation (ddof=1) of the permutation distribution."""
        return self._result.params.sd

    @property
    def is_degenerate(self) -> bool:
        """True when the permutation distribution has zero or undefined spread."""
        return bool(np.isnan(self._result.params.z_score))

    @property
    def z_score(self) -> float:
        """
        (observed - mean) / sd.

        Raises:
            DegenerateDistributionError: If sd is zero or undefined.
        """
        if self.is_degenerate:
            raise DegenerateDistributionError(
                f"z-score undefined: permutation distribution has sd={self.sd!r} "
                f"over R={self.R} replicates",
                R=self.R,
                sd=self.sd,
            )
        return self._result.params.z_score

    @property
    def count(self) -> int:
        """Number of replicates at least as extreme as the observed statistic."""
        return self._result.params.count

    @property
    def p_value(self) -> float:
        """Monte Carlo p-value: count / R."""
        return self._result.params.p_value

    @property
    def p_value_is_bound(self) -> bool:
        """True when p == 0, i.e. the p-value is only known to be < 1/R."""
        return self.p_value == 0.0

    @property
    def p_value_bound(self) -> float:
        """Smallest resolvable p-value, 1/R."""
        return 1.0 / self.R

    @property
    def p_value_corrected(self) -> float:
        """Phipson-Smyth p-value: (count + 1) / (R + 1)."""
        return (self.count + 1) / (self.R + 1)

    @property
    def p_value_normal(self) -> float:
        """
        Normal-approximation p-value from the z-score.

        Raises:
            DegenerateDistributionError: If the z-score is undefined.
        """
        z = self.z_score
        if self.alternative == "two.sided":
            return float(2.0 * sp_stats.norm.sf(abs(z)))
        if self.alternative == "greater":
            return float(sp_stats.norm.sf(z))
        return float(sp_stats.norm.cdf(z))

    @property
    def R(self) -> int:
        """Number of permutations."""
        return self._result.params.R

    @property
    def alternative(self) -> str:
        """Alternative hypothesis direction."""
        return self._result.params.alternative

    # --- Metadata ---

    @property
    def statistic_name(self) -> str:
        return self._design.statistic_name

    @property
    def levels(self) -> tuple | None:
        """Canonical (first, second) group order, if groups were used."""
        return self._design.levels

    @property
    def stratified(self) -> bool:
        return self._design.is_stratified

    @property
    def seed(self):
        """Seed used."""
        return self._design.seed

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # --- Display ---

    def summary(self) -> str:
        """
        Permutation test summary.

        Produces:
            STRATIFIED PERMUTATION TEST

            Statistic: difference_of_means (B - A)
            Number of permutations: 1000
            Observed statistic: 3
            Null mean / sd: 0.00412 / 1.21
            z-score: 2.48
            p-value (greater): < 0.001
        """
        title = "STRATIFIED PERMUTATION TEST" if self.stratified else "PERMUTATION TEST"
        stat_line = f"Statistic: {self.statistic_name}"
        if self.levels is not None:
            stat_line += f" ({self.levels[1]} - {self.levels[0]})"
        z_line = (
            "z-score: undefined (degenerate distribution)"
            if self.is_degenerate else f"z-score: {self.z_score:.4g}"
        )
        lines = [
            f"\n{title}",
            "",
            stat_line,
            f"Number of permutations: {self.R}",
            f"Observed statistic: {self.observed_stat:.6g}",
            f"Null mean / sd: {self.mean:.6g} / {self.sd:.6g}",
            z_line,
            f"p-value ({self.alternative}): {format_p_value(self.p_value, self.R)}",
            "",
        ]
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"PermutationSolution(R={self.R}, "
            f"observed={self.observed_stat:.4g}, "
            f"p_value={self.p_value:.4g})"
        )


@dataclass
class IndependentSamplesSolution:
    """
    User-facing results of repeated independent-sample draws.

    Describes the distribution of mean(second) - mean(first) over
    one-observation-per-stratum samples.
    """
    _result: Result[IndependentSamplesParams]
    _design: 'IndependentSamplesDesign'

    @property
    def diffs(self) -> NDArray[np.floating[Any]]:
        """Group difference of each independent draw, shape (R,)."""
        return self._result.params.diffs

    @property
    def sample_sizes(self) -> NDArray[np.integer[Any]]:
        """Per-group sample sizes of each draw, shape (R, 2)."""
        return self._result.params.sample_sizes

    @property
    def mean(self) -> float:
        return self._result.params.mean

    @property
    def sd(self) -> float:
        return self._result.params.sd

    @property
    def prop_positive(self) -> float:
        """Proportion of draws with a positive difference."""
        return self._result.params.prop_positive

    @property
    def R(self) -> int:
        return self._result.params.R

    @property
    def levels(self) -> tuple:
        return self._design.levels

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def summary(self) -> str:
        first, second = self.levels
        lines = [
            "\nINDEPENDENT SAMPLES",
            "",
            f"Difference: {second} - {first}",
            f"Number of draws: {self.R}",
            f"Strata per group: {self.info['n_strata_first']} / "
            f"{self.info['n_strata_second']}",
            f"Mean difference: {self.mean:.6g} (sd {self.sd:.6g})",
            f"Proportion > 0: {self.prop_positive:.4g}",
            "",
        ]
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"IndependentSamplesSolution(R={self.R}, "
            f"mean={self.mean:.4g}, prop_positive={self.prop_positive:.4g})"
        )


@dataclass
class HybridSolution:
    """
    User-facing hybrid test results.

    ``distribution`` holds, per replicate, the independent-sample group
    difference minus the difference after relabelling that same sample.
    A distribution centred near zero means the independent-sample
    difference is indistinguishable from relabelling noise.
    """
    _result: Result[HybridParams]
    _design: 'IndependentSamplesDesign'

    @property
    def distribution(self) -> NDArray[np.floating[Any]]:
        """indep_diffs - perm_diffs, shape (R,)."""
        return self._result.params.distribution

    @property
    def indep_diffs(self) -> NDArray[np.floating[Any]]:
        return self._result.params.indep_diffs

    @property
    def perm_diffs(self) -> NDArray[np.floating[Any]]:
        return self._result.params.perm_diffs

    @property
    def sample_sizes(self) -> NDArray[np.integer[Any]]:
        """Equalized per-group sample size of each replicate, shape (R,)."""
        return self._result.params.sample_sizes

    @property
    def mean(self) -> float:
        return self._result.params.mean

    @property
    def sd(self) -> float:
        return self._result.params.sd

    @property
    def p_value(self) -> float:
        """One-sided p-value: proportion of the distribution >= 0."""
        return self._result.params.p_value

    @property
    def R(self) -> int:
        return self._result.params.R

    @property
    def levels(self) -> tuple:
        return self._design.levels

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def summary(self) -> str:
        first, second = self.levels
        lines = [
            "\nHYBRID INDEPENDENT-SAMPLE PERMUTATION TEST",
            "",
            f"Difference: {second} - {first}",
            f"Number of replicates: {self.R}",
            f"Mean (independent - permuted): {self.mean:.6g} (sd {self.sd:.6g})",
            f"p-value (proportion >= 0): {self.p_value:.4g}",
            "",
        ]
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"HybridSolution(R={self.R}, mean={self.mean:.4g}, "
            f"p_value={self.p_value:.4g})"
        )
