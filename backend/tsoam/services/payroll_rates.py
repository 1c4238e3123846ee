# tsoam/services/payroll_rates.py
"""
Kenyan statutory deduction tables + compute helpers.

Config precedence per rate component:
    1) Environment variables (override specific fields)
    2) Built-in defaults (2025 rates)

Implemented:
    - NSSF:         6% employee share of pensionable pay, capped at the upper earnings limit (72,000)
    - SHA:          2.75% of gross, minimum 300
    - Housing levy: 1.5% of gross
    - PAYE:         monthly bands on gross less NSSF, SHA and housing levy, minus personal relief 2,400
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple

# ---------------------------- Utilities ---------------------------- #

def D(val: Any) -> Decimal:
    if isinstance(val, Decimal):
        return val
    try:
        return Decimal(str(val))
    except Exception:
        return Decimal("0")

def q2(val: Decimal) -> Decimal:
    return D(val).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

def _env_decimal(key: str, default: Decimal) -> Decimal:
    raw = os.getenv(key)
    if raw is None:
        return default
    try:
        return D(raw)
    except Exception:
        return default

# ---------------------------- Rate table ---------------------------- #

# (band width, rate); None width = remainder
PAYE_BANDS: List[Tuple[Optional[Decimal], Decimal]] = [
    (Decimal("24000"), Decimal("0.10")),
    (Decimal("8333"), Decimal("0.25")),
    (Decimal("467667"), Decimal("0.30")),
    (Decimal("300000"), Decimal("0.325")),
    (None, Decimal("0.35")),
]

@dataclass(frozen=True)
class StatutoryRates:
    nssf_rate: Decimal
    nssf_upper_limit: Decimal
    sha_rate: Decimal
    sha_min: Decimal
    housing_levy_rate: Decimal
    personal_relief: Decimal

def load_rates() -> StatutoryRates:
    return StatutoryRates(
        nssf_rate=_env_decimal("PAYROLL_NSSF_RATE", Decimal("0.06")),
        nssf_upper_limit=_env_decimal("PAYROLL_NSSF_UPPER_LIMIT", Decimal("72000")),
        sha_rate=_env_decimal("PAYROLL_SHA_RATE", Decimal("0.0275")),
        sha_min=_env_decimal("PAYROLL_SHA_MIN", Decimal("300")),
        housing_levy_rate=_env_decimal("PAYROLL_HOUSING_LEVY_RATE", Decimal("0.015")),
        personal_relief=_env_decimal("PAYROLL_PERSONAL_RELIEF", Decimal("2400")),
    )

# ---------------------------- Compute helpers ---------------------------- #

def compute_nssf(gross: Decimal | float | int, rates: Optional[StatutoryRates] = None) -> Decimal:
    rates = rates or load_rates()
    base = D(gross)
    if rates.nssf_upper_limit > 0 and base > rates.nssf_upper_limit:
        base = rates.nssf_upper_limit
    return q2(base * rates.nssf_rate) if base > 0 else q2(0)

def compute_sha(gross: Decimal | float | int, rates: Optional[StatutoryRates] = None) -> Decimal:
    rates = rates or load_rates()
    g = D(gross)
    if g <= 0:
        return q2(0)
    return q2(max(g * rates.sha_rate, rates.sha_min))

def compute_housing_levy(gross: Decimal | float | int, rates: Optional[StatutoryRates] = None) -> Decimal:
    rates = rates or load_rates()
    g = D(gross)
    return q2(g * rates.housing_levy_rate) if g > 0 else q2(0)

def compute_paye(taxable: Decimal | float | int, rates: Optional[StatutoryRates] = None) -> Decimal:
    rates = rates or load_rates()
    remaining = D(taxable)
    tax = Decimal("0")
    for width, rate in PAYE_BANDS:
        if remaining <= 0:
            break
        chunk = remaining if width is None else min(remaining, width)
        tax += chunk * rate
        remaining -= chunk
    tax -= rates.personal_relief
    return q2(tax) if tax > 0 else q2(0)

# ---------------------------- Aggregate helper ---------------------------- #

def compute_statutory_deductions(gross: Decimal | float | int) -> Dict[str, Decimal]:
    rates = load_rates()
    g = D(gross)
    nssf = compute_nssf(g, rates)
    sha = compute_sha(g, rates)
    housing = compute_housing_levy(g, rates)
    taxable = g - nssf - sha - housing
    paye = compute_paye(taxable, rates)
    return {
        "nssf": nssf,
        "sha": sha,
        "housing_levy": housing,
        "taxable": q2(taxable if taxable > 0 else 0),
        "paye": paye,
        "total": q2(nssf + sha + housing + paye),
    }

__all__ = [
    "load_rates",
    "compute_nssf",
    "compute_sha",
    "compute_housing_levy",
    "compute_paye",
    "compute_statutory_deductions",
]
