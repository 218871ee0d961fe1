"""Lookup tables - single source of truth for the simulator's fixed figures.

Market, tax and cost figures are illustrative static values, not live data.
"""

from __future__ import annotations

from typing import TypedDict


class TaxProfile(TypedDict):
    """Tax treatment of a holding structure."""
    label: str
    effective_cap_gain_rate: float
    yearly_benefit: float
    setup_cost: float
    description: str


class MarketLiquidity(TypedDict):
    """Liquidity figures for one market region."""
    label: str
    avg_dom: dict[str, int]
    broker_fee: float


# --- Holding structures ---

TAX_PROFILES: dict[str, TaxProfile] = {
    "personal": {
        "label": "Individual Ownership",
        "effective_cap_gain_rate": 0.238,
        "yearly_benefit": 0.0,
        "setup_cost": 0.0,
        "description": "Direct ownership. Eligible for Homestead Exemption and 3% Save Our Homes cap. No liability shield.",
    },
    "llc": {
        "label": "Domestic LLC",
        "effective_cap_gain_rate": 0.20,
        "yearly_benefit": 0.003,
        "setup_cost": 15_000.0,
        "description": "Florida LLC. Pass-through entity with personal liability protection. Annual filings and legal maintenance.",
    },
    "trust": {
        "label": "Irrevocable Trust",
        "effective_cap_gain_rate": 0.15,
        "yearly_benefit": 0.005,
        "setup_cost": 50_000.0,
        "description": "Trust managed by a Trustee. Removes asset from taxable estate. Step-up in basis for heirs.",
    },
    "foreign": {
        "label": "Foreign Corporate Structure",
        "effective_cap_gain_rate": 0.20,
        "yearly_benefit": 0.002,
        "setup_cost": 30_000.0,
        "description": "Offshore corp (e.g. BVI) holds FL LLC. Used by international buyers. FIRPTA 15% withholding applies.",
    },
}

# --- Market regions ---

DEFAULT_REGION = "beverly-hills"
DEFAULT_DAYS_ON_MARKET = 300
DEFAULT_BROKER_FEE_PCT = 5.0

MARKET_LIQUIDITY: dict[str, MarketLiquidity] = {
    "miami-beach": {"label": "Miami Beach, FL", "avg_dom": {"ultra": 280, "premium": 180, "entry": 90}, "broker_fee": 5.0},
    "palm-beach": {"label": "Palm Beach, FL", "avg_dom": {"ultra": 320, "premium": 200, "entry": 110}, "broker_fee": 5.0},
    "bel-air": {"label": "Bel Air, CA", "avg_dom": {"ultra": 350, "premium": 220, "entry": 120}, "broker_fee": 5.0},
    "beverly-hills": {"label": "Beverly Hills, CA", "avg_dom": {"ultra": 300, "premium": 190, "entry": 100}, "broker_fee": 5.0},
    "malibu": {"label": "Malibu, CA", "avg_dom": {"ultra": 360, "premium": 240, "entry": 130}, "broker_fee": 5.0},
    "hamptons": {"label": "The Hamptons, NY", "avg_dom": {"ultra": 400, "premium": 260, "entry": 150}, "broker_fee": 5.0},
    "aspen": {"label": "Aspen, CO", "avg_dom": {"ultra": 310, "premium": 200, "entry": 100}, "broker_fee": 6.0},
    "monaco": {"label": "Monte Carlo, Monaco", "avg_dom": {"ultra": 450, "premium": 300, "entry": 160}, "broker_fee": 4.0},
    "manhattan": {"label": "Manhattan, NY", "avg_dom": {"ultra": 270, "premium": 160, "entry": 80}, "broker_fee": 6.0},
    "mayfair": {"label": "Mayfair, London", "avg_dom": {"ultra": 380, "premium": 250, "entry": 140}, "broker_fee": 3.0},
    "saint-tropez": {"label": "Saint-Tropez, France", "avg_dom": {"ultra": 500, "premium": 340, "entry": 200}, "broker_fee": 5.0},
    "paris-16": {"label": "Paris 16e, France", "avg_dom": {"ultra": 340, "premium": 210, "entry": 120}, "broker_fee": 5.0},
}

# Listing addresses are matched against the broader table,
# free chat text against the narrower one ("16th" is too ambiguous in prose).
ADDRESS_REGION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "miami-beach": ("miami", "south beach", "biscayne", "coral gables", "brickell", "key biscayne"),
    "palm-beach": ("palm beach", "west palm", "jupiter", "boca raton"),
    "bel-air": ("bel air", "bel-air", "holmby hills"),
    "beverly-hills": ("beverly hills", "trousdale", "benedict canyon"),
    "malibu": ("malibu", "pacific palisades"),
    "hamptons": ("hamptons", "east hampton", "southampton", "montauk"),
    "aspen": ("aspen", "snowmass"),
    "monaco": ("monaco", "monte carlo"),
    "manhattan": ("manhattan", "tribeca", "soho", "new york", "nyc"),
    "mayfair": ("mayfair", "belgravia", "knightsbridge", "london"),
    "saint-tropez": ("saint-tropez", "st tropez", "ramatuelle"),
    "paris-16": ("paris", "16e", "16th", "passy", "auteuil"),
}

CHAT_REGION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "miami-beach": ("miami", "south beach", "biscayne", "brickell"),
    "palm-beach": ("palm beach", "boca raton"),
    "bel-air": ("bel air", "bel-air"),
    "beverly-hills": ("beverly hills",),
    "malibu": ("malibu", "pacific palisades"),
    "hamptons": ("hamptons", "east hampton", "southampton"),
    "aspen": ("aspen", "snowmass"),
    "monaco": ("monaco", "monte carlo"),
    "manhattan": ("manhattan", "tribeca", "soho", "new york", "nyc"),
    "mayfair": ("mayfair", "belgravia", "london"),
    "saint-tropez": ("saint-tropez", "st tropez", "saint tropez"),
    "paris-16": ("paris",),
}

# --- Price brackets ---

ULTRA_THRESHOLD = 10_000_000
PREMIUM_THRESHOLD = 5_000_000

BRACKET_LABELS = {"ultra": "$10M+", "premium": "$5-10M", "entry": "$2-5M"}

# --- Carry costs ---

SERVICE_FIELDS: dict[str, str] = {
    "concierge": "Concierge",
    "specialized_security": "Security",
    "high_end_landscaping": "Landscaping",
    "pool_maintenance": "Pool maintenance",
    "wine_climate": "Wine climate",
    "smart_home_systems": "Smart home",
    "property_management": "Management",
}

STAFF_FIELDS = ("live_in_staff", "security_team", "property_managers")

SPECIALIZED_MAINTENANCE_COSTS: dict[str, float] = {
    "infinity_pool": 48_000.0,
    "wine_climate_control": 18_000.0,
    "smart_home_updates": 22_000.0,
}

# --- Appreciation ---

SCARCITY_BONUSES: dict[str, float] = {
    "scarcity_private_beach": 1.2,
    "scarcity_historic_heritage": 0.8,
    "scarcity_starchitect": 1.0,
    "scarcity_unique_view": 0.6,
}

SCARCITY_LABELS: dict[str, str] = {
    "scarcity_private_beach": "Private Beach Access",
    "scarcity_historic_heritage": "Historic Heritage",
    "scarcity_starchitect": '"Starchitect" Design',
    "scarcity_unique_view": "Unique Panoramic View",
}

# --- Stress testing ---

RATE_SHIFTS: tuple[float, ...] = (-2.0, -1.0, -0.5, 0.0, 0.5, 1.0, 2.0)
APPRECIATION_SHIFTS: tuple[float, ...] = (-2.0, -1.0, 0.0, 1.0, 2.0)
STRESS_HORIZONS: tuple[int, ...] = (5, 10)
MIN_SHOCKED_RATE_PCT = 0.001

# --- Liquidity ---

HIGH_LIQUIDITY_RISK_DAYS = 360
MEDIUM_LIQUIDITY_RISK_DAYS = 200

# --- Valid ranges (inclusive) used by text extraction and advice ---

FIELD_BOUNDS: dict[str, tuple[float, float]] = {
    "vacancy_rate": (0, 100),
    "ltv_ratio": (0, 100),
    "interest_rate": (0, 30),
    "property_tax_rate": (0, 100),
    "base_appreciation_rate": (0, 100),
    "loan_term_years": (5, 30),
    "hold_period_years": (1, 30),
}
