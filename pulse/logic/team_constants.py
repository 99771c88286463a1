# === SALES TEAM PRODUCT CATALOGUE ===
#
# Single source of truth for which sales team owns which product line.
# Team order here is the display/audit order used everywhere.

import calendar
from typing import Optional

TEAM_PRODUCTS = {
    "Achievers": [
        "Asvon Tab 10/100mg 30s", "Atoxan 30mg Tab.", "D-ABS injection (IM)",
        "D-ABS injection (IM) 5s", "Pentallin Syp. IVY", "Oplex 50mg/5ml Syrup 120ml",
        "Swicef 100mg/5ml Susp.", "Swicef DS 200mg/5ml Susp.", "Vitaglobin Plus Syp",
        "Vitaglobin Syp.", "VITAGLOBIN Syrup 120ml", "Vonz Tab 10mg 30s", "Vonz Tab 20mg 30s",
    ],
    "Passionate": [
        "Cyestra Tablet", "Riboxy Injection 500mg / 10ml", "LER 2.5mg Tablet",
        "Neet", "Nomo-D 10/10mg Tablet", "Oplex F 100mg/0.35mg 30s Tab",
        "Swicef 400mg Cap.", "Vitaglobin Tablets",
    ],
    "Concord": ["Gaviscon Liquid", "Panadol 500mg", "Brufen 400mg", "Augmentin 625mg"],
    "Dynamic": ["Solu-Cortef 100mg", "Voren Inj", "Dicloran Gel", "Xylocaine 2%"],
}

TEAMS = list(TEAM_PRODUCTS.keys())

# Departments (sheet tabs in the source workbooks)
SALES_DEPARTMENT = "Sales"
DEPARTMENTS = ["Sales", "Production", "Finance"]

# Weekdays with no sales activity (Python weekday numbering, 0=Mon)
REST_DAYS = (calendar.SUNDAY,)

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

_PRODUCT_INDEX = {p: team for team, products in TEAM_PRODUCTS.items() for p in products}
_PRODUCT_INDEX_CI = {p.lower(): team for p, team in _PRODUCT_INDEX.items()}


def team_for_product(metric: str) -> Optional[str]:
    """Returns the owning team for a product name, or None if it is not catalogued."""
    if not metric:
        return None
    name = metric.strip()
    if name in _PRODUCT_INDEX:
        return _PRODUCT_INDEX[name]
    return _PRODUCT_INDEX_CI.get(name.lower())
