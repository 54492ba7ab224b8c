class WeightConverter:
    """Convert between the stored unit (kg) and the display unit."""

    KG_TO_LB = 2.20462
    UNITS = ("kg", "lb")

    @staticmethod
    def kg_to_lb(kg: float) -> float:
        return round(kg * WeightConverter.KG_TO_LB, 2)

    @staticmethod
    def lb_to_kg(lb: float) -> float:
        return round(lb / WeightConverter.KG_TO_LB, 2)

    @classmethod
    def to_unit(cls, kg: float, unit: str) -> float:
        """Return stored ``kg`` expressed in ``unit``."""
        if unit not in cls.UNITS:
            raise ValueError(f"unknown unit: {unit}")
        return cls.kg_to_lb(kg) if unit == "lb" else kg

    @classmethod
    def from_unit(cls, value: float, unit: str) -> float:
        """Return ``value`` given in ``unit`` as kg for storage."""
        if unit not in cls.UNITS:
            raise ValueError(f"unknown unit: {unit}")
        return cls.lb_to_kg(value) if unit == "lb" else value

    @classmethod
    def format(cls, kg: float, unit: str = "kg") -> str:
        return f"{cls.to_unit(kg, unit):g} {unit}"
