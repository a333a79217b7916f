"""
Financial Derivation

Pure functions from one record's raw attributes to its derived metrics:
- Fixed-rate mortgage amortisation
- Multi-unit income, NOI, cap rate and DSCR
- Price per acre / unit / square foot, rent yield
- Acquisition cost calculator for land purchases
- Quick down-payment and rent-roll calculator for multi-unit purchases

Metrics are recomputed on demand and never cached on the record across
edits. Every division is guarded so no NaN or Infinity reaches a sort key.
"""

import math
from dataclasses import asdict, dataclass
from typing import Optional, Union

from .models import Record, RecordKind


# =============================================================================
# Configuration Constants
# =============================================================================

# Financing assumptions used when a multi-unit record leaves them blank
DEFAULT_DOWN_PERCENT = 25.0
DEFAULT_RATE_PERCENT = 6.5
DEFAULT_TERM_YEARS = 30.0

# Land calculator defaults
CALCULATOR_DOWN_PERCENT = 20.0
CALCULATOR_TAX_RATE_PERCENT = 1.2
CALCULATOR_INSURANCE_MONTHLY = 80.0

# Property tax rate (percent of price per year) by state
DEFAULT_TAX_RATE_BY_STATE = {
    "CT": 1.8,
    "MA": 1.1,
    "ME": 1.3,
    "NH": 1.9,
    "RI": 1.6,
    "VT": 1.6,
}


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


def _finite(value) -> Optional[float]:
    """Return value as float if it is a finite number, else None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _amount(value) -> float:
    """Money or count field where a missing value means zero."""
    number = _finite(value)
    return number if number is not None else 0.0


def _value_or(value, default: float) -> float:
    number = _finite(value)
    return number if number is not None else default


# =============================================================================
# Amortisation
# =============================================================================


def term_months(term_years: float) -> int:
    """Loan term in whole months (at least one year)."""
    years = max(1.0, _value_or(term_years, DEFAULT_TERM_YEARS))
    return max(1, round_half_up(years * 12))


def loan_amount(price: float, down_percent: float) -> float:
    """Principal borrowed after the down payment."""
    down = clamp(_value_or(down_percent, 0.0), 0.0, 100.0)
    return max(0.0, _amount(price) * (1 - down / 100))


def monthly_payment(principal: float, annual_rate_percent: float, term_years: float) -> float:
    """
    Fixed-rate monthly principal and interest payment.

    payment = P * r / (1 - (1 + r) ** -n), with r the monthly rate and
    n the number of months. A zero rate pays the principal down evenly.

    Args:
        principal: Amount borrowed
        annual_rate_percent: Nominal annual rate, percent (clamped to 0-100)
        term_years: Loan term in years

    Returns:
        Monthly payment (0 when there is nothing to borrow)
    """
    principal = _amount(principal)
    if principal <= 0:
        return 0.0

    months = term_months(term_years)
    rate = clamp(_value_or(annual_rate_percent, 0.0), 0.0, 100.0) / 100 / 12

    if rate == 0:
        return principal / months
    return principal * (rate / (1 - math.pow(1 + rate, -months)))


@dataclass(frozen=True)
class FinancingAssumptions:
    """Defaults applied when a record leaves its financing terms blank."""

    down_percent: float = DEFAULT_DOWN_PERCENT
    rate_percent: float = DEFAULT_RATE_PERCENT
    term_years: float = DEFAULT_TERM_YEARS


# =============================================================================
# Derived Metrics
# =============================================================================


@dataclass
class LandMetrics:
    """Derived metrics for a land parcel."""
    price_per_acre: Optional[float]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MultiUnitMetrics:
    """Income and debt metrics for a multi-unit property."""
    effective_gross_income: float
    net_operating_income: float
    loan_amount: float
    monthly_payment: float
    annual_debt_service: float
    cap_rate: float
    dscr: float
    price_per_unit: Optional[float]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SingleFamilyMetrics:
    """Price and rent metrics for a single-family property."""
    price_per_sqft: Optional[float]
    rent_yield: Optional[float]

    def to_dict(self) -> dict:
        return asdict(self)


DerivedMetrics = Union[LandMetrics, MultiUnitMetrics, SingleFamilyMetrics]


def price_per_acre(record: Record) -> Optional[float]:
    """Asking price per acre, or None unless both price and acres are positive."""
    acres = _finite(record.get("Acres"))
    price = _finite(record.get("Price"))
    if acres is None or price is None or acres <= 0 or price <= 0:
        return None
    return price / acres


def derive_land(record: Record) -> LandMetrics:
    return LandMetrics(price_per_acre=price_per_acre(record))


def derive_multi_unit(
    record: Record,
    assumptions: Optional[FinancingAssumptions] = None,
) -> MultiUnitMetrics:
    """
    Derive income, debt service and return ratios for a multi-unit record.

    EGI = units * rent * 12 * (1 - vacancy) + other income * 12
    NOI = EGI - taxes - insurance - operating expenses

    Missing income and expense lines count as zero. Cap rate and DSCR are
    zero, not undefined, when their denominators are not positive.
    """
    assumptions = assumptions or FinancingAssumptions()

    units = _amount(record.get("Units"))
    rent = _amount(record.get("RentPerUnit"))
    vacancy = clamp(_value_or(record.get("VacancyPercent"), 0.0), 0.0, 100.0)
    other_income_monthly = _amount(record.get("OtherIncomeMonthly"))
    taxes = _amount(record.get("TaxesAnnual"))
    insurance = _amount(record.get("InsuranceAnnual"))
    opex = _amount(record.get("OpExAnnual"))
    price = _amount(record.get("Price"))

    down = _value_or(record.get("DownPercent"), assumptions.down_percent)
    rate = _value_or(record.get("RatePercent"), assumptions.rate_percent)
    term = _value_or(record.get("TermYears"), assumptions.term_years)

    egi = (units * rent * 12) * (1 - vacancy / 100) + other_income_monthly * 12
    noi = egi - taxes - insurance - opex

    principal = loan_amount(price, down)
    payment = monthly_payment(principal, rate, term)
    annual_debt = payment * 12

    return MultiUnitMetrics(
        effective_gross_income=egi,
        net_operating_income=noi,
        loan_amount=principal,
        monthly_payment=payment,
        annual_debt_service=annual_debt,
        cap_rate=noi / price if price > 0 else 0.0,
        dscr=noi / annual_debt if annual_debt > 0 else 0.0,
        price_per_unit=price / units if units > 0 else None,
    )


def derive_single_family(record: Record) -> SingleFamilyMetrics:
    """Price per square foot and gross annual rent yield."""
    sqft = _amount(record.get("Sqft"))
    price = _amount(record.get("Price"))
    rent = _amount(record.get("RentZestimate"))

    return SingleFamilyMetrics(
        price_per_sqft=price / sqft if sqft > 0 else None,
        rent_yield=(rent * 12) / price if price > 0 else None,
    )


def derive_metrics(
    record: Record,
    assumptions: Optional[FinancingAssumptions] = None,
) -> DerivedMetrics:
    """Derive the metrics appropriate to the record's kind."""
    if record.kind == RecordKind.MULTI_UNIT:
        return derive_multi_unit(record, assumptions)
    if record.kind == RecordKind.SINGLE_FAMILY:
        return derive_single_family(record)
    return derive_land(record)


# =============================================================================
# Acquisition Cost Calculator
# =============================================================================


@dataclass
class AcquisitionInputs:
    """Inputs to the monthly carrying-cost calculator."""
    price: Optional[float]
    down_percent: float = CALCULATOR_DOWN_PERCENT
    rate_percent: float = DEFAULT_RATE_PERCENT
    term_years: float = DEFAULT_TERM_YEARS
    tax_rate_percent: float = CALCULATOR_TAX_RATE_PERCENT
    insurance_monthly: float = CALCULATOR_INSURANCE_MONTHLY
    hoa_monthly: float = 0.0

    @classmethod
    def for_state(cls, state: str, price: Optional[float], **overrides) -> "AcquisitionInputs":
        """Inputs using the state's default property tax rate when known."""
        tax_rate = DEFAULT_TAX_RATE_BY_STATE.get(str(state or "").strip().upper())
        if tax_rate is not None and "tax_rate_percent" not in overrides:
            overrides["tax_rate_percent"] = tax_rate
        return cls(price=price, **overrides)


@dataclass
class AcquisitionEstimate:
    """Monthly carrying cost of a purchase."""
    loan_amount: float
    monthly_principal_interest: float
    monthly_taxes: float
    monthly_total: float
    total_interest: float

    def to_dict(self) -> dict:
        return asdict(self)


def estimate_acquisition(inputs: AcquisitionInputs) -> AcquisitionEstimate:
    """
    Estimate the monthly cost of buying at the given price.

    Non-finite or non-positive inputs produce zero amounts rather than
    errors.
    """
    price = _finite(inputs.price)
    down = _finite(inputs.down_percent)

    if price is None or down is None:
        principal = 0.0
    else:
        principal = loan_amount(price, down)

    payment = monthly_payment(principal, inputs.rate_percent, inputs.term_years)

    tax_rate = _finite(inputs.tax_rate_percent)
    if price is None or tax_rate is None or price <= 0 or tax_rate < 0:
        taxes = 0.0
    else:
        taxes = price * (tax_rate / 100) / 12

    total = payment + taxes + _amount(inputs.insurance_monthly) + _amount(inputs.hoa_monthly)

    if payment <= 0 or principal <= 0:
        interest = 0.0
    else:
        interest = payment * term_months(inputs.term_years) - principal

    return AcquisitionEstimate(
        loan_amount=principal,
        monthly_principal_interest=payment,
        monthly_taxes=taxes,
        monthly_total=total,
        total_interest=interest,
    )


# =============================================================================
# Multi-Unit Quick Calculator
# =============================================================================


@dataclass
class MultiUnitCalculatorInputs:
    """Inputs to the multi-unit purchase quick calculator."""
    price: Optional[float] = None
    down_percent: float = DEFAULT_DOWN_PERCENT
    units: Optional[float] = None
    rent_per_unit: Optional[float] = None


@dataclass
class MultiUnitCalculatorEstimate:
    """Cash needed at purchase and gross monthly rent roll."""
    down_payment: float
    total_rent_monthly: float

    def to_dict(self) -> dict:
        return asdict(self)


def down_payment(price: Optional[float], down_percent: float) -> float:
    """Cash down at the given percent (clamped to 0-100); 0 for unusable inputs."""
    price = _finite(price)
    down = _finite(down_percent)
    if price is None or down is None:
        return 0.0
    return max(0.0, price * clamp(down, 0.0, 100.0) / 100)


def total_rent_monthly(units: Optional[float], rent_per_unit: Optional[float]) -> float:
    """Units times rent per unit; 0 unless both are positive."""
    units = _finite(units)
    rent = _finite(rent_per_unit)
    if units is None or rent is None or units <= 0 or rent <= 0:
        return 0.0
    return units * rent


def estimate_multi_unit_purchase(inputs: MultiUnitCalculatorInputs) -> MultiUnitCalculatorEstimate:
    return MultiUnitCalculatorEstimate(
        down_payment=down_payment(inputs.price, inputs.down_percent),
        total_rent_monthly=total_rent_monthly(inputs.units, inputs.rent_per_unit),
    )
