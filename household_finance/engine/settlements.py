"""
Settlement Netting

Settlements are directed payments between household members. A member's
net balance is what others paid them minus what they paid others. Summed
over all members, net balances are always zero.
"""

from household_finance.engine.periods import ZERO, total
from household_finance.models.ledger import HouseholdLedger
from household_finance.models.reports import SettlementBalance, SettlementStatus
from household_finance.models.validation import ValidationIssue


def settlement_balance(ledger: HouseholdLedger, user_id: int) -> SettlementBalance:
    owed_to_me = total(s.amount for s in ledger.settlements if s.to_user_id == user_id)
    i_owe = total(s.amount for s in ledger.settlements if s.from_user_id == user_id)
    net = owed_to_me - i_owe

    if net > ZERO:
        status = SettlementStatus.OWED
    elif net < ZERO:
        status = SettlementStatus.OWES
    else:
        status = SettlementStatus.SETTLED

    return SettlementBalance(
        user_id=user_id,
        owed_to_me=owed_to_me,
        i_owe=i_owe,
        net_balance=net,
        status=status,
    )


def check_settlement_parties(
    ledger: HouseholdLedger,
    from_user_id: int,
    to_user_id: int,
) -> list[ValidationIssue]:
    """
    Issues that forbid recording a settlement between two users.

    Both users must belong to the ledger's household, and nobody can
    settle with themselves.
    """
    issues = []
    members = ledger.member_ids()

    if from_user_id not in members or to_user_id not in members:
        issues.append(ValidationIssue(
            field="users",
            issue_type="foreign_member",
            message="Both users must be in your household",
            severity="error",
        ))

    if from_user_id == to_user_id:
        issues.append(ValidationIssue(
            field="to_user_id",
            issue_type="self_settlement",
            message="Cannot settle with yourself",
            severity="error",
            suggested_fix="Pick a different household member",
        ))

    return issues
