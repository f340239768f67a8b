"""
Multi-curve calibration engine.

Calibrates all curves of a group simultaneously:
1. Resolve each node into an instrument priced at its market quote
2. Solve PV_i(p) = 0 for the curve parameters p with Newton's method,
   the Jacobian built analytically from point sensitivities
3. Verify the residual norm against the tolerance

The converged provider carries a CalibrationInfo with the Jacobian and the
parameter-to-quote transition matrix used for market quote sensitivities.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Mapping, Optional, Tuple
import logging

import numpy as np
from scipy.linalg import lu_factor, lu_solve

from ..config import CalibrationSettings
from ..conventions import ReferenceData
from ..errors import CalibrationNonConvergenceError, InconsistentMarketDataError, MarketDataNotFoundError
from ..pricers.swaps import DiscountingSwapProductPricer
from ..rates_provider import RatesProvider
from .curve import Curve
from .definitions import CurveDefinition, CurveGroupDefinition
from .instruments import CalibrationInstrument

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CalibrationInfo:
    """
    Calibration diagnostics of one curve group.

    Attributes:
        group_name: Curve group name
        curve_names: Calibrated curves, in parameter order
        parameter_counts: Parameters per curve
        quote_ids: Market quote of each parameter's instrument
        jacobian: dPV_i / dp_j at the solution
        transition_matrix: dp / dq, parameter sensitivity to each quote
        iterations: Newton iterations used
        residual_norm: Final residual 2-norm
    """
    group_name: str
    curve_names: Tuple[str, ...]
    parameter_counts: Tuple[int, ...]
    quote_ids: Tuple[str, ...]
    jacobian: np.ndarray = field(repr=False)
    transition_matrix: np.ndarray = field(repr=False)
    iterations: int = 0
    residual_norm: float = 0.0


class MultiCurveCalibrator:
    """
    Newton calibration of a curve group to market quotes.

    Args:
        settings: Tolerance, iteration ceiling and step control
        swap_pricer: Pricer used for swap nodes
    """

    def __init__(self, settings: CalibrationSettings, swap_pricer: DiscountingSwapProductPricer):
        self.settings = settings
        self.swap_pricer = swap_pricer

    def calibrate(
        self,
        group: CurveGroupDefinition,
        valuation_date: date,
        market_quotes: Mapping[str, float],
        reference_data: Optional[ReferenceData] = None,
        fixings: Optional[Mapping[str, Mapping[date, float]]] = None,
        known: Optional[RatesProvider] = None,
    ) -> RatesProvider:
        """
        Calibrate the group's curves so every node instrument prices to zero.

        Args:
            group: Curve group definition
            valuation_date: Valuation date
            market_quotes: Quote id -> quote
            reference_data: Conventions and holidays (standard if omitted)
            fixings: Index name -> {date: fixing}
            known: Provider whose curves are held fixed and merged into the result

        Returns:
            RatesProvider with the calibrated and known curves

        Raises:
            MarketDataNotFoundError: If a quote or required curve is missing
            InconsistentMarketDataError: If known is at another valuation date
            CalibrationNonConvergenceError: If Newton's method fails
        """
        reference_data = reference_data or ReferenceData.standard()
        if known is not None and known.valuation_date != valuation_date:
            raise InconsistentMarketDataError(
                f"Known provider is at {known.valuation_date}, calibrating at {valuation_date}"
            )

        definitions = group.ordered_definitions
        self._check_requirements(group, definitions, reference_data, known)

        instruments, curves = self._resolve(definitions, valuation_date, market_quotes, reference_data)
        base = self._base_provider(group, valuation_date, curves, fixings, known)
        counts = [c.parameter_count for c in curves]
        names = [c.name for c in curves]

        params = np.concatenate([c.parameters for c in curves])
        provider = base
        residual = self._residual(instruments, provider)
        norm = float(np.linalg.norm(residual))
        iteration = 0

        while norm >= self.settings.tolerance:
            if iteration >= self.settings.max_iterations:
                raise CalibrationNonConvergenceError(group.name, iteration, norm)
            iteration += 1

            jacobian = self._jacobian(instruments, provider, names, counts)
            step = self._newton_step(group.name, iteration, norm, jacobian, residual)
            params, provider, residual, norm = self._line_search(
                group.name, iteration, instruments, base, curves, params, step, norm
            )
            logger.debug("Curve group %s iteration %d: residual norm %.3e", group.name, iteration, norm)

        jacobian = self._jacobian(instruments, provider, names, counts)
        quote_sens = np.array([inst.quote_sensitivity(provider) for inst in instruments])
        try:
            transition = -np.linalg.solve(jacobian, np.diag(quote_sens))
        except np.linalg.LinAlgError as exc:
            raise CalibrationNonConvergenceError(group.name, iteration, norm, "singular Jacobian at solution") from exc

        info = CalibrationInfo(
            group_name=group.name,
            curve_names=tuple(names),
            parameter_counts=tuple(counts),
            quote_ids=tuple(inst.quote_id for inst in instruments),
            jacobian=jacobian,
            transition_matrix=transition,
            iterations=iteration,
            residual_norm=norm,
        )
        logger.info(
            "Calibrated curve group %s (%d curves, %d parameters) in %d iterations, residual %.3e",
            group.name, len(names), len(params), iteration, norm,
        )
        infos = dict(provider.calibration_info)
        infos[group.name] = info
        return RatesProvider(
            valuation_date=provider.valuation_date,
            curves=provider.curves,
            discount_curves=provider.discount_curves,
            index_curves=provider.index_curves,
            fixings=provider.fixings,
            calibration_info=infos,
        )

    def _resolve(
        self,
        definitions: List[CurveDefinition],
        valuation_date: date,
        market_quotes: Mapping[str, float],
        reference_data: ReferenceData,
    ) -> Tuple[List[CalibrationInstrument], List[Curve]]:
        instruments = []
        curves = []
        for definition in definitions:
            times = []
            guesses = []
            for node in definition.nodes:
                if node.quote_id not in market_quotes:
                    raise MarketDataNotFoundError(
                        f"Missing market quote '{node.quote_id}' for node {node.label} of curve {definition.name}"
                    )
                quote = market_quotes[node.quote_id]
                instruments.append(node.instrument(
                    valuation_date, quote, reference_data, self.swap_pricer, self.settings.notional
                ))
                times.append(node.node_time(valuation_date, reference_data))
                guesses.append(node.initial_guess(valuation_date, quote, definition.value_type, reference_data))

            if np.any(np.diff(times) <= 0):
                raise ValueError(f"Node dates of curve '{definition.name}' must be strictly increasing")
            curves.append(Curve(
                definition.name,
                definition.currency,
                times,
                guesses,
                definition.value_type,
                definition.interpolator,
                definition.left_extrapolator,
                definition.right_extrapolator,
                labels=[node.label for node in definition.nodes],
            ))
        return instruments, curves

    @staticmethod
    def _check_requirements(group, definitions, reference_data, known):
        for definition in definitions:
            for node in definition.nodes:
                for role, key in node.requirements(reference_data):
                    if role == "discount":
                        present = group.discount_curve_name(key) is not None or (
                            known is not None and key in known.discount_curves)
                    else:
                        present = group.index_curve_name(key) is not None or (
                            known is not None and key in known.index_curves)
                    if not present:
                        raise MarketDataNotFoundError(
                            f"Node {node.label} of curve {definition.name} needs a {role} curve for {key}, "
                            f"which is neither in group '{group.name}' nor known"
                        )

    @staticmethod
    def _base_provider(group, valuation_date, curves, fixings, known) -> RatesProvider:
        discount: Dict[str, str] = {}
        index: Dict[str, str] = {}
        for entry in group.entries:
            for currency in entry.discount_currencies:
                discount[currency] = entry.curve_name
            for index_name in entry.index_names:
                index[index_name] = entry.curve_name

        provider = RatesProvider(
            valuation_date=valuation_date,
            curves={c.name: c for c in curves},
            discount_curves=discount,
            index_curves=index,
            fixings=fixings or {},
        )
        if known is None:
            return provider
        return known.combined_with(provider)

    @staticmethod
    def _with_parameters(base: RatesProvider, curves: List[Curve], params: np.ndarray) -> RatesProvider:
        updated = {}
        offset = 0
        for curve in curves:
            updated[curve.name] = curve.with_parameters(params[offset:offset + curve.parameter_count])
            offset += curve.parameter_count
        return base.with_curves(updated)

    @staticmethod
    def _residual(instruments, provider) -> np.ndarray:
        return np.array([inst.present_value(provider) for inst in instruments])

    @staticmethod
    def _jacobian(instruments, provider, names, counts) -> np.ndarray:
        """Row i: derivative of instrument i's PV with respect to the group parameters."""
        rows = []
        for inst in instruments:
            sens = provider.parameter_sensitivity(inst.present_value_sensitivity(provider))
            row = []
            for name, count in zip(names, counts):
                vector = np.zeros(count)
                for s in sens:
                    if s.curve_name == name:
                        vector = vector + s.sensitivity
                row.append(vector)
            rows.append(np.concatenate(row))
        return np.array(rows)

    @staticmethod
    def _newton_step(group_name, iteration, norm, jacobian, residual) -> np.ndarray:
        lu, piv = lu_factor(jacobian, check_finite=True)
        if np.any(np.diag(lu) == 0.0):
            raise CalibrationNonConvergenceError(group_name, iteration, norm, "singular Jacobian")
        step = lu_solve((lu, piv), -residual)
        if not np.all(np.isfinite(step)):
            raise CalibrationNonConvergenceError(group_name, iteration, norm, "non-finite Newton step")
        return step

    def _line_search(self, group_name, iteration, instruments, base, curves, params, step, norm):
        """
        Full Newton step, halved while the residual norm does not decrease.

        After max_step_halvings the smallest step is taken regardless.
        """
        scale = 1.0
        for halving in range(self.settings.max_step_halvings + 1):
            trial = params + scale * step
            try:
                provider = self._with_parameters(base, curves, trial)
                residual = self._residual(instruments, provider)
            except ValueError:
                # e.g. non-positive discount factors under log interpolation
                residual = None
            if residual is not None and np.all(np.isfinite(residual)):
                trial_norm = float(np.linalg.norm(residual))
                if trial_norm < norm or halving == self.settings.max_step_halvings:
                    return trial, provider, residual, trial_norm
            scale *= 0.5
        raise CalibrationNonConvergenceError(group_name, iteration, norm, "no admissible Newton step")


__all__ = [
    "CalibrationInfo",
    "MultiCurveCalibrator",
]
