"""
CPU backends for permutation and independent-sample procedures.

CPUPermutationBackend: Permutation test, globally or within strata.
CPUIndependentSamplesBackend: Repeated one-per-stratum group differences.
CPUHybridBackend: Independent samples tested against their own relabelling.

Replicate loops run sequentially on one RandomSampler, or through joblib
when ``n_jobs != 1``. In the parallel path replicate b draws from the b-th
child stream of the design seed and writes only slot b of a preallocated
array, so results do not depend on the number of workers.
"""

from __future__ import annotations

import warnings
from typing import Callable

import numpy as np
from joblib import Parallel, delayed
from numpy.typing import NDArray

from permstats.core.result import Result
from permstats.core.compute.timing import Timer
from permstats.montecarlo._common import (
    HybridParams,
    IndependentSamplesParams,
    PermutationParams,
    describe,
    summarize_null,
    tail_count,
)
from permstats.montecarlo._independent import (
    draw_from_cells,
    equalize_sizes,
    group_cells,
    independent_difference,
)
from permstats.montecarlo._sampler import RandomSampler
from permstats.montecarlo._strata import block_bounds, shuffle_blocks, stratum_blocks
from permstats.montecarlo.design import IndependentSamplesDesign, PermutationDesign


def run_replicates(
    replicate: Callable[[RandomSampler], float | tuple],
    R: int,
    sampler: RandomSampler,
    n_jobs: int = 1,
    width: int = 1,
) -> NDArray[np.float64]:
    """
    Evaluate ``replicate`` R times into a preallocated (R, width) array.

    Sequential runs share ``sampler``; parallel runs give every replicate
    its own child sampler.
    """
    out = np.empty((R, width), dtype=np.float64)

    if n_jobs == 1:
        for b in range(R):
            out[b] = replicate(sampler)
        return out

    children = sampler.spawn(R)
    values = Parallel(n_jobs=n_jobs, prefer="threads")(
        delayed(replicate)(child) for child in children
    )
    for b, value in enumerate(values):
        out[b] = value
    return out


def _equalize_warning(n_first: int, n_second: int) -> str:
    return (
        f"group sizes differ ({n_first} vs {n_second} strata); larger sample "
        f"subsampled to {min(n_first, n_second)} per replicate"
    )


def _degenerate_warning(sd: float, R: int) -> str:
    return (
        f"null distribution is degenerate (sd={sd!r} over R={R} replicates); "
        f"z-score is undefined"
    )


class CPUPermutationBackend:
    """
    CPU backend for permutation testing.

    Permutes the target (y or group labels), never x. With strata, the
    target is permuted only inside each stratum's block of the reassembly
    order (see permstats.montecarlo._strata).
    """

    @property
    def name(self) -> str:
        return 'cpu_permutation'

    def solve(self, design: PermutationDesign) -> Result[PermutationParams]:
        """Run permutation test and return Result[PermutationParams]."""
        timer = Timer()
        timer.start()

        x = design.x
        target = design.target
        statistic = design.statistic
        R = design.R
        alternative = design.alternative
        sampler = RandomSampler.coerce(design.seed)
        info = {
            'n': design.n,
            'statistic': design.statistic_name,
            'alternative': alternative,
            'levels': design.levels,
            'stratified': design.is_stratified,
            'n_jobs': design.n_jobs,
        }
        warnings_list: list[str] = []

        if design.is_stratified:
            values, blocks = stratum_blocks(design.strata)
            order = np.concatenate(blocks)
            bounds = block_bounds(blocks)
            # Observed and replicates share one row order, so a replicate
            # that restores the observed labels ties it exactly
            x = x[order]
            target = target[order]

        with timer.section('observed_stat'):
            observed = float(statistic(x, target))

        with timer.section('permutation_replicates'):
            if design.is_stratified:
                def replicate(s: RandomSampler) -> float:
                    return statistic(x, shuffle_blocks(target, bounds, s))

                fixed = sum(
                    1 for start, stop in bounds
                    if len(set(target[start:stop].tolist())) < 2
                )
                if fixed:
                    warnings_list.append(
                        f"{fixed} of {len(bounds)} strata hold a single target "
                        f"value and cannot change under permutation"
                    )
                info['n_strata'] = len(values)
                info['reassembly_order'] = order
            else:
                def replicate(s: RandomSampler) -> float:
                    return statistic(x, s.permute(target))

            perm_stats = run_replicates(replicate, R, sampler, design.n_jobs)[:, 0]

        with timer.section('summary_statistics'):
            mean, sd, z = summarize_null(perm_stats, observed)
            count = tail_count(perm_stats, observed, alternative)
            p_value = count / R

        if np.isnan(z):
            msg = _degenerate_warning(sd, R)
            warnings_list.append(msg)
            warnings.warn(msg)

        timer.stop()

        params = PermutationParams(
            observed_stat=observed,
            perm_stats=perm_stats,
            mean=mean,
            sd=sd,
            z_score=z,
            count=count,
            p_value=p_value,
            R=R,
            alternative=alternative,
        )

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=(
                'cpu_stratified_permutation' if design.is_stratified else self.name
            ),
            warnings=tuple(warnings_list),
        )


class CPUIndependentSamplesBackend:
    """
    CPU backend for repeated independent-sample group differences.

    Each replicate draws one observation per stratum per group, optionally
    equalizes the two sample sizes, and records mean(second) - mean(first).
    """

    @property
    def name(self) -> str:
        return 'cpu_independent_samples'

    def solve(self, design: IndependentSamplesDesign) -> Result[IndependentSamplesParams]:
        """Run R independent draws and return Result[IndependentSamplesParams]."""
        timer = Timer()
        timer.start()

        x = design.x
        equalize = design.equalize
        sampler = RandomSampler.coerce(design.seed)

        with timer.section('partition'):
            cells_first, cells_second = group_cells(
                design.group, design.strata, design.levels
            )

        def replicate(s: RandomSampler) -> tuple[float, int, int]:
            a = draw_from_cells(x, cells_first, s)
            b = draw_from_cells(x, cells_second, s)
            if equalize:
                a, b = equalize_sizes(a, b, s)
            return independent_difference(a, b), len(a), len(b)

        with timer.section('independent_replicates'):
            out = run_replicates(replicate, design.R, sampler, design.n_jobs, width=3)

        with timer.section('summary_statistics'):
            diffs = out[:, 0]
            mean, sd = describe(diffs)
            prop_positive = float(np.mean(diffs > 0))

        timer.stop()

        warnings_list: list[str] = []
        if equalize and len(cells_first) != len(cells_second):
            warnings_list.append(_equalize_warning(len(cells_first), len(cells_second)))

        params = IndependentSamplesParams(
            diffs=diffs,
            sample_sizes=out[:, 1:].astype(np.intp),
            mean=mean,
            sd=sd,
            prop_positive=prop_positive,
            R=design.R,
        )

        return Result(
            params=params,
            info={
                'n': design.x.shape[0],
                'levels': design.levels,
                'n_strata_first': len(cells_first),
                'n_strata_second': len(cells_second),
                'equalize': equalize,
                'n_jobs': design.n_jobs,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )


class CPUHybridBackend:
    """
    CPU backend for the hybrid independent-sample permutation test.

    Per replicate: draw and equalize an independent pair, take its group
    difference, then shuffle the pooled pair, split it back into two
    halves of the same size and take that difference too. The recorded
    value is the first difference minus the second.
    """

    @property
    def name(self) -> str:
        return 'cpu_hybrid'

    def solve(self, design: IndependentSamplesDesign) -> Result[HybridParams]:
        """Run hybrid test and return Result[HybridParams]."""
        timer = Timer()
        timer.start()

        x = design.x
        sampler = RandomSampler.coerce(design.seed)

        with timer.section('partition'):
            cells_first, cells_second = group_cells(
                design.group, design.strata, design.levels
            )

        def replicate(s: RandomSampler) -> tuple[float, float, int]:
            a = draw_from_cells(x, cells_first, s)
            b = draw_from_cells(x, cells_second, s)
            a, b = equalize_sizes(a, b, s)
            k = len(a)
            indep_diff = independent_difference(a, b)
            pooled = s.permute(np.concatenate([a, b]))
            perm_diff = independent_difference(pooled[:k], pooled[k:])
            return indep_diff, perm_diff, k

        with timer.section('hybrid_replicates'):
            out = run_replicates(replicate, design.R, sampler, design.n_jobs, width=3)

        with timer.section('summary_statistics'):
            indep_diffs = out[:, 0]
            perm_diffs = out[:, 1]
            distribution = indep_diffs - perm_diffs
            mean, sd = describe(distribution)
            p_value = float(np.mean(distribution >= 0))

        timer.stop()

        warnings_list: list[str] = []
        if len(cells_first) != len(cells_second):
            warnings_list.append(_equalize_warning(len(cells_first), len(cells_second)))

        params = HybridParams(
            distribution=distribution,
            indep_diffs=indep_diffs,
            perm_diffs=perm_diffs,
            sample_sizes=out[:, 2].astype(np.intp),
            mean=mean,
            sd=sd,
            p_value=p_value,
            R=design.R,
        )

        return Result(
            params=params,
            info={
                'n': design.x.shape[0],
                'levels': design.levels,
                'n_strata_first': len(cells_first),
                'n_strata_second': len(cells_second),
                'n_jobs': design.n_jobs,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )
