"""
Tests for financial derivation.

Verifies:
- Amortisation formula, zero-rate case and input clamping
- Multi-unit EGI / NOI / cap rate / DSCR with defined zeros
- Unit prices are None when their denominator is not positive
- Acquisition calculator with state tax defaults
- No NaN or Infinity in any derived metric
"""

import math
import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.finance import (
    AcquisitionInputs,
    FinancingAssumptions,
    LandMetrics,
    MultiUnitCalculatorInputs,
    MultiUnitMetrics,
    SingleFamilyMetrics,
    derive_metrics,
    derive_multi_unit,
    derive_single_family,
    estimate_acquisition,
    estimate_multi_unit_purchase,
    loan_amount,
    monthly_payment,
    price_per_acre,
    round_half_up,
    term_months,
)
from core.models import Record, RecordKind


def land(**fields) -> Record:
    return Record(id=None, kind=RecordKind.LAND, fields=fields)


def multi(**fields) -> Record:
    return Record(id=None, kind=RecordKind.MULTI_UNIT, fields=fields)


def single(**fields) -> Record:
    return Record(id=None, kind=RecordKind.SINGLE_FAMILY, fields=fields)


@pytest.fixture
def fourplex():
    return multi(
        Units=4,
        RentPerUnit=1500,
        VacancyPercent=5,
        OtherIncomeMonthly=100,
        TaxesAnnual=6000,
        InsuranceAnnual=2400,
        OpExAnnual=4800,
        Price=400000,
    )


# =============================================================================
# Test: Amortisation
# =============================================================================

class TestAmortisation:

    def test_standard_payment(self):
        assert monthly_payment(240000, 6.5, 30) == pytest.approx(1516.96, abs=0.01)

    def test_zero_rate_divides_evenly(self):
        assert monthly_payment(240000, 0, 30) == 240000 / 360

    def test_no_principal_no_payment(self):
        assert monthly_payment(0, 6.5, 30) == 0.0
        assert monthly_payment(None, 6.5, 30) == 0.0

    def test_rate_clamped(self):
        assert monthly_payment(100000, -3, 10) == 100000 / 120
        assert monthly_payment(100000, 250, 10) == monthly_payment(100000, 100, 10)

    def test_term_at_least_one_year(self):
        assert term_months(0.5) == 12
        assert term_months(0) == 12

    def test_term_rounds_months(self):
        assert term_months(15.5) == 186
        assert term_months(None) == 360

    def test_loan_amount_clamps_down_payment(self):
        assert loan_amount(300000, 20) == pytest.approx(240000)
        assert loan_amount(300000, 150) == 0.0
        assert loan_amount(300000, -10) == 300000

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(33.5) == 34
        assert round_half_up(-2.5) == -2


# =============================================================================
# Test: Multi-unit
# =============================================================================

class TestMultiUnit:

    def test_income_and_noi(self, fourplex):
        metrics = derive_multi_unit(fourplex)

        assert metrics.effective_gross_income == pytest.approx(69600)
        assert metrics.net_operating_income == pytest.approx(56400)

    def test_cap_rate_and_dscr(self, fourplex):
        metrics = derive_multi_unit(fourplex)
        expected_payment = monthly_payment(300000, 6.5, 30)

        assert metrics.loan_amount == pytest.approx(300000)
        assert metrics.monthly_payment == pytest.approx(expected_payment)
        assert metrics.annual_debt_service == pytest.approx(expected_payment * 12)
        assert metrics.cap_rate == pytest.approx(0.141)
        assert metrics.dscr == pytest.approx(56400 / (expected_payment * 12))
        assert metrics.price_per_unit == 100000

    def test_record_financing_overrides_defaults(self, fourplex):
        fourplex.fields.update(DownPercent=100)
        metrics = derive_multi_unit(fourplex)

        assert metrics.loan_amount == 0
        assert metrics.dscr == 0.0

    def test_custom_assumptions(self, fourplex):
        metrics = derive_multi_unit(fourplex, FinancingAssumptions(down_percent=50, rate_percent=0, term_years=25))

        assert metrics.loan_amount == pytest.approx(200000)
        assert metrics.monthly_payment == pytest.approx(200000 / 300)

    def test_zero_price_gives_zero_ratios(self):
        metrics = derive_multi_unit(multi(Units=2, RentPerUnit=1000, Price=0))

        assert metrics.cap_rate == 0.0
        assert metrics.dscr == 0.0
        assert not math.isnan(metrics.cap_rate)

    def test_missing_units_gives_no_price_per_unit(self):
        metrics = derive_multi_unit(multi(Price=300000))

        assert metrics.price_per_unit is None
        assert metrics.net_operating_income == 0

    def test_vacancy_clamped(self):
        metrics = derive_multi_unit(multi(Units=1, RentPerUnit=1000, VacancyPercent=140))
        assert metrics.effective_gross_income == 0

    def test_all_metrics_finite(self, fourplex):
        for value in derive_multi_unit(fourplex).to_dict().values():
            assert math.isfinite(value)


# =============================================================================
# Test: Single-family and Land
# =============================================================================

class TestUnitPrices:

    def test_single_family_metrics(self):
        metrics = derive_single_family(single(Sqft=2000, Price=400000, RentZestimate=2500))

        assert metrics.price_per_sqft == 200
        assert metrics.rent_yield == pytest.approx(0.075)

    def test_single_family_missing_denominators(self):
        metrics = derive_single_family(single(Sqft=0, Price=None, RentZestimate=2500))

        assert metrics.price_per_sqft is None
        assert metrics.rent_yield is None

    def test_price_per_acre(self):
        assert price_per_acre(land(Acres=10, Price=100000)) == 10000

    @pytest.mark.parametrize("acres,price", [(0, 100000), (None, 100000), (10, 0), (10, None), (-1, 5)])
    def test_price_per_acre_requires_positive_inputs(self, acres, price):
        assert price_per_acre(land(Acres=acres, Price=price)) is None

    def test_derive_metrics_dispatches_on_kind(self, fourplex):
        assert isinstance(derive_metrics(land(Acres=1, Price=1)), LandMetrics)
        assert isinstance(derive_metrics(fourplex), MultiUnitMetrics)
        assert isinstance(derive_metrics(single()), SingleFamilyMetrics)


# =============================================================================
# Test: Acquisition Calculator
# =============================================================================

class TestAcquisitionCalculator:

    def test_defaults(self):
        inputs = AcquisitionInputs(price=300000)

        assert inputs.down_percent == 20
        assert inputs.tax_rate_percent == 1.2
        assert inputs.insurance_monthly == 80

    def test_state_tax_rate(self):
        assert AcquisitionInputs.for_state("ct", 300000).tax_rate_percent == 1.8
        assert AcquisitionInputs.for_state("MA", 300000).tax_rate_percent == 1.1
        assert AcquisitionInputs.for_state("TX", 300000).tax_rate_percent == 1.2

    def test_state_tax_rate_override(self):
        inputs = AcquisitionInputs.for_state("NH", 300000, tax_rate_percent=2.5)
        assert inputs.tax_rate_percent == 2.5

    def test_estimate(self):
        estimate = estimate_acquisition(AcquisitionInputs.for_state("CT", 300000))
        payment = monthly_payment(240000, 6.5, 30)

        assert estimate.loan_amount == pytest.approx(240000)
        assert estimate.monthly_principal_interest == pytest.approx(payment)
        assert estimate.monthly_taxes == pytest.approx(450)
        assert estimate.monthly_total == pytest.approx(payment + 450 + 80)
        assert estimate.total_interest == pytest.approx(payment * 360 - 240000)

    def test_hoa_included(self):
        base = estimate_acquisition(AcquisitionInputs(price=100000))
        with_hoa = estimate_acquisition(AcquisitionInputs(price=100000, hoa_monthly=150))

        assert with_hoa.monthly_total == pytest.approx(base.monthly_total + 150)

    @pytest.mark.parametrize("price", [None, 0, -5, math.nan, math.inf])
    def test_unusable_price_gives_zero_amounts(self, price):
        estimate = estimate_acquisition(AcquisitionInputs(price=price, insurance_monthly=0))

        assert estimate.loan_amount == 0
        assert estimate.monthly_principal_interest == 0
        assert estimate.monthly_taxes == 0
        assert estimate.monthly_total == 0
        assert estimate.total_interest == 0


# =============================================================================
# Test: Multi-Unit Quick Calculator
# =============================================================================

class TestMultiUnitCalculator:

    def test_down_payment_and_rent_roll(self):
        estimate = estimate_multi_unit_purchase(
            MultiUnitCalculatorInputs(price=400000, units=4, rent_per_unit=1500)
        )

        assert estimate.down_payment == pytest.approx(100000)
        assert estimate.total_rent_monthly == pytest.approx(6000)

    def test_down_percent_clamped(self):
        estimate = estimate_multi_unit_purchase(
            MultiUnitCalculatorInputs(price=400000, down_percent=150)
        )

        assert estimate.down_payment == pytest.approx(400000)

    @pytest.mark.parametrize("units,rent", [(None, 1500), (0, 1500), (4, None), (4, -10)])
    def test_rent_roll_needs_positive_inputs(self, units, rent):
        estimate = estimate_multi_unit_purchase(
            MultiUnitCalculatorInputs(price=400000, units=units, rent_per_unit=rent)
        )

        assert estimate.total_rent_monthly == 0

    @pytest.mark.parametrize("price", [None, math.nan, -5])
    def test_unusable_price_gives_zero_down(self, price):
        estimate = estimate_multi_unit_purchase(MultiUnitCalculatorInputs(price=price))

        assert estimate.down_payment == 0
        assert estimate.to_dict() == {"down_payment": 0, "total_rent_monthly": 0}
