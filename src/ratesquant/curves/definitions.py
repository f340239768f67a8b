"""
Curve and curve group definitions.

Configuration objects describing what to calibrate:
- CurveDefinition: nodes, value type and interpolation of one curve
- CurveGroupEntry: which currencies / indices a curve serves
- CurveGroupDefinition: curves calibrated together
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .curve import ValueType
from .extrapolation import create_extrapolator
from .interpolation import create_interpolator


@dataclass(frozen=True)
class CurveDefinition:
    """
    Attributes:
        name: Curve name
        currency: Currency of the curve
        nodes: Calibration nodes, one curve parameter each
        value_type: Meaning of the curve parameters
        interpolator: Interpolator name
        left_extrapolator: Extrapolator name below the first node
        right_extrapolator: Extrapolator name above the last node
    """
    name: str
    currency: str
    nodes: Tuple
    value_type: ValueType = ValueType.ZERO_RATE
    interpolator: str = "natural_cubic_spline"
    left_extrapolator: str = "flat"
    right_extrapolator: str = "flat"

    def __post_init__(self):
        object.__setattr__(self, "nodes", tuple(self.nodes))
        if len(self.nodes) < 2:
            raise ValueError(f"Curve '{self.name}' needs at least 2 nodes")
        labels = [node.label for node in self.nodes]
        if len(set(labels)) != len(labels):
            raise ValueError(f"Curve '{self.name}' has duplicate node labels")
        # Fail on unknown names at configuration time
        create_interpolator(self.interpolator)
        create_extrapolator(self.left_extrapolator)
        create_extrapolator(self.right_extrapolator)

    @property
    def parameter_count(self) -> int:
        return len(self.nodes)


@dataclass(frozen=True)
class CurveGroupEntry:
    """
    Roles of one curve in a group.

    Attributes:
        curve_name: Curve the entry refers to
        discount_currencies: Currencies discounted on the curve
        index_names: Indices forecast from the curve
    """
    curve_name: str
    discount_currencies: Tuple[str, ...] = ()
    index_names: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "discount_currencies", tuple(self.discount_currencies))
        object.__setattr__(self, "index_names", tuple(self.index_names))


@dataclass(frozen=True)
class CurveGroupDefinition:
    """
    Curves calibrated simultaneously.

    Curve order (and node order within each curve) fixes the order of
    the calibration parameters and instruments.
    """
    name: str
    entries: Tuple[CurveGroupEntry, ...]
    curve_definitions: Tuple[CurveDefinition, ...]

    def __post_init__(self):
        object.__setattr__(self, "entries", tuple(self.entries))
        object.__setattr__(self, "curve_definitions", tuple(self.curve_definitions))
        defined = [d.name for d in self.curve_definitions]
        if len(set(defined)) != len(defined):
            raise ValueError(f"Curve group '{self.name}' defines a curve twice")
        entry_names = [e.curve_name for e in self.entries]
        if set(entry_names) != set(defined) or len(set(entry_names)) != len(entry_names):
            raise ValueError(
                f"Curve group '{self.name}' needs exactly one entry per defined curve"
            )
        self._check_unique_roles()

    def _check_unique_roles(self):
        currencies = [c for e in self.entries for c in e.discount_currencies]
        indices = [i for e in self.entries for i in e.index_names]
        if len(set(currencies)) != len(currencies) or len(set(indices)) != len(indices):
            raise ValueError(f"Curve group '{self.name}' assigns a currency or index to several curves")

    def curve_definition(self, name: str) -> CurveDefinition:
        for d in self.curve_definitions:
            if d.name == name:
                return d
        raise ValueError(f"Curve '{name}' is not defined in group '{self.name}'")

    def discount_curve_name(self, currency: str) -> Optional[str]:
        for e in self.entries:
            if currency in e.discount_currencies:
                return e.curve_name
        return None

    def index_curve_name(self, index_name: str) -> Optional[str]:
        for e in self.entries:
            if index_name in e.index_names:
                return e.curve_name
        return None

    @property
    def ordered_definitions(self) -> Sequence[CurveDefinition]:
        """Definitions in entry order."""
        return [self.curve_definition(e.curve_name) for e in self.entries]

    @property
    def parameter_count(self) -> int:
        return sum(d.parameter_count for d in self.curve_definitions)


__all__ = [
    "CurveDefinition",
    "CurveGroupEntry",
    "CurveGroupDefinition",
]
