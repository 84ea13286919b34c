"""
Constants for the Americano scheduler and rating engine.
"""

# Rating defaults
STARTING_ELO = 1500
PROVISIONAL_MATCHES = 20  # Ratings stay provisional below this many rated matches

# K-factor steps: (matches played upper bound, K). Last step applies beyond.
K_FACTOR_NEW = 32          # < 20 matches
K_FACTOR_ESTABLISHED = 24  # 20-99 matches
K_FACTOR_MASTER = 16       # >= 100 matches
K_FACTOR_STEPS = [
    (20, K_FACTOR_NEW),
    (100, K_FACTOR_ESTABLISHED),
]

# Margin of victory multiplier: BASE + PER_POINT * min(mov, CAP)
MOV_BASE = 0.55
MOV_PER_POINT = 0.3
MOV_CAP = 5

# Expected score scale (classic 400-point logistic)
ELO_SCALE = 400.0

# Recent-form window for rating trend
TREND_WINDOW = 5

# Scheduling
PLAYERS_PER_MATCH = 4
PLAYERS_PER_TEAM = 2
PAIRINGS_PER_GROUP = 3  # Ways to split 4 players into two teams of two

# Tier thresholds: tier is the first band whose upper bound exceeds the rating.
# (tier, lower bound, upper bound exclusive)
TIER_BANDS = [
    ("wood", 0, 1300),
    ("bronze", 1300, 1450),
    ("silver", 1450, 1550),
    ("gold", 1550, 1650),
    ("platinum", 1650, 1800),
    ("master", 1800, 2000),
    ("grandmaster", 2000, None),
]

TIER_DISPLAY_NAMES = {
    "wood": "Wood",
    "bronze": "Bronze",
    "silver": "Silver",
    "gold": "Gold",
    "platinum": "Diamond",
    "master": "Master",
    "grandmaster": "Grandmaster",
}

TIER_COLORS = {
    "wood": "#8B4513",
    "bronze": "#cd7f32",
    "silver": "#c0c0c0",
    "gold": "#ffd700",
    "platinum": "#e5e4e2",
    "master": "#9b59b6",
    "grandmaster": "#ff4444",
}

# Player analysis
BEST_PARTNER_MIN_MATCHES = 3  # Matches together before a partnership can be "best"
RECENT_MATCHES = 5  # Head-to-head matches listed as recent
