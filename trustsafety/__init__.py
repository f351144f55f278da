"""Trust & Safety enforcement engine for marketplace chat.

Detects attempts to move conversations off-platform, keeps an append-only
violation ledger per account, derives a bounded reputation score from it, and
drives accounts through suspension and appeal.
"""

__version__ = "0.1.0"
