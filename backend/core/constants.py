"""
Core constants — **Single Source of Truth** for project-wide magic numbers.

Any formula or business rule that references a numeric constant should
import it from here instead of hardcoding.  This avoids drift between
apps that use the same value.
"""

# ── Report intake ───────────────────────────────────────────────────
# Flat credit written to the ledger for every submitted report,
# independent of the item's estimated value.
REPORT_REWARD_POINTS: int = 100

# Share of the estimated monetary value shown to the reporter as points:
#     points = floor(round((min + max) / 2) × ESTIMATED_VALUE_POINTS_RATE)
ESTIMATED_VALUE_POINTS_RATE: float = 0.1

# ── Collection ──────────────────────────────────────────────────────
# Verified collections earn a random reward in [MIN, MAX] inclusive.
COLLECT_REWARD_MIN: int = 10
COLLECT_REWARD_MAX: int = 59

# Classifier confidence must be strictly greater than this value.
VERIFICATION_CONFIDENCE_THRESHOLD: float = 0.7

# ── Listing limits ──────────────────────────────────────────────────
RECENT_TRANSACTIONS_LIMIT: int = 10
RECENT_REPORTS_LIMIT: int = 10
COLLECTION_TASKS_LIMIT: int = 20
