"""
Barberman signals - public event API.

Emitted signals (all sent after the surrounding transaction commits):
- visit_recorded: Emitted by VisitLedger.record_visit()
- reward_redeemed: Emitted by VisitLedger.record_visit() when a reward was redeemed
- loyalty_status_changed: Emitted whenever the cached loyalty status changes
"""

from django.dispatch import Signal

# Ledger signals
visit_recorded = Signal()  # sender=Client, client=Client, visit=Visit
reward_redeemed = Signal()  # sender=Client, client=Client, visit=Visit, record=RedemptionRecord

# Status signals
loyalty_status_changed = Signal()  # sender=Client, client=Client, old_status=str, new_status=str
