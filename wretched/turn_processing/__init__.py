"""Action precondition checks.

Every engine action runs its validator pipeline before touching the session,
so a rejected call always leaves state unchanged.
"""
