"""
Django Barberman - Barbershop loyalty engine.

Usage:
    from barberman import LoyaltyService
    from barberman.exceptions import BarbermanError, IneligibleError

    LoyaltyService.register_client("CLI-001", "Rafael", "Souza")
    LoyaltyService.select_reward("CLI-001", "free-cut")
    LoyaltyService.record_visit("CLI-001", "BRB-01", [("haircut", 1)])
    view = LoyaltyService.progress("CLI-001")

    # Redeem while recording the visit (all-or-nothing)
    LoyaltyService.record_visit(
        "CLI-001", "BRB-01", ["haircut"], redemption="free-cut"
    )
"""


def __getattr__(name):
    if name == "LoyaltyService":
        from barberman.service import LoyaltyService

        return LoyaltyService
    if name == "Gates":
        from barberman.gates import Gates

        return Gates
    if name == "BarbermanError":
        from barberman.exceptions import BarbermanError

        return BarbermanError
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["LoyaltyService", "Gates", "BarbermanError"]
__version__ = "0.1.0"
