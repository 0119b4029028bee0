"""
Unit conversion resolution for the costing engine.

Lookup order for ``resolve(from_unit, to_unit, item_id)``:
1. Same unit: factor 1, regardless of item
2. Item-specific conversion from_unit -> to_unit
3. Business-wide conversion from_unit -> to_unit
4. Reciprocal of an item-specific conversion to_unit -> from_unit
5. Reciprocal of a business-wide conversion to_unit -> from_unit

Only direct or inverse-direct lookups are attempted; there is no
multi-hop search (g -> kg -> lb is not found unless g -> lb is stored).
"""

from typing import Any, Dict, Iterable, Optional, Tuple

from recipe_costing.utils.constants import UNIT_ALIASES

from .types import ConversionData, Diagnostic, DiagnosticKind


def normalize_unit(unit: Optional[str]) -> str:
    """Canonical spelling of a unit: stripped, lower-case, aliases folded.

    Examples:
        >>> normalize_unit(" L ")
        'l'
        >>> normalize_unit("Grams")
        'g'
    """
    key = (unit or "").strip().lower()
    return UNIT_ALIASES.get(key, key)


class UnitConversionResolver:
    """Resolves conversion factors from a fixed set of stored conversions.

    The resolver indexes its conversions once; it holds no other state and
    can be shared between costing passes over the same catalog.
    """

    def __init__(self, conversions: Iterable[ConversionData] = ()):
        self._item_specific: Dict[Tuple[Any, str, str], float] = {}
        self._business_wide: Dict[Tuple[str, str], float] = {}

        for conversion in conversions:
            if not conversion.factor or conversion.factor <= 0:
                continue
            key = (normalize_unit(conversion.from_unit), normalize_unit(conversion.to_unit))
            if conversion.item_id is not None:
                # First stored entry wins, matching lookup-by-first-match
                self._item_specific.setdefault((conversion.item_id, *key), conversion.factor)
            else:
                self._business_wide.setdefault(key, conversion.factor)

    def resolve(self, from_unit: str, to_unit: str, item_id: Any = None) -> Optional[float]:
        """
        Resolve the factor converting a quantity in from_unit to to_unit.

        Args:
            from_unit: Unit the quantity is expressed in
            to_unit: Unit to convert into
            item_id: Optional inventory item for item-specific overrides

        Returns:
            Multiplication factor, or None if no direct or inverse
            conversion exists

        Example:
            >>> resolver = UnitConversionResolver([ConversionData("kg", "g", 1000)])
            >>> resolver.resolve("g", "kg")
            0.001
        """
        source = normalize_unit(from_unit)
        target = normalize_unit(to_unit)

        if source == target:
            return 1.0

        if item_id is not None:
            factor = self._item_specific.get((item_id, source, target))
            if factor is not None:
                return factor

        factor = self._business_wide.get((source, target))
        if factor is not None:
            return factor

        if item_id is not None:
            factor = self._item_specific.get((item_id, target, source))
            if factor is not None:
                return 1.0 / factor

        factor = self._business_wide.get((target, source))
        if factor is not None:
            return 1.0 / factor

        return None

    def resolve_or_identity(
        self, from_unit: str, to_unit: str, item_id: Any = None, recipe_id: Any = None
    ) -> Tuple[float, Optional[Diagnostic]]:
        """
        Resolve a factor, degrading to 1 when no conversion exists.

        Returns:
            Tuple of (factor, diagnostic); diagnostic is None when a
            conversion was found
        """
        factor = self.resolve(from_unit, to_unit, item_id)
        if factor is not None:
            return factor, None

        diagnostic = Diagnostic(
            kind=DiagnosticKind.MISSING_CONVERSION,
            message=f"No conversion from '{from_unit}' to '{to_unit}'; using factor 1",
            recipe_id=recipe_id,
            item_id=item_id,
            from_unit=from_unit,
            to_unit=to_unit,
        )
        return 1.0, diagnostic
