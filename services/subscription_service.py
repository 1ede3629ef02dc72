from dataclasses import asdict

from models.recurring_transaction import RecurringTransaction, SubscriptionItem
from utils.constants import HOUSING_KEYWORDS, MONTHLY_MULTIPLIERS, Frequency
from utils.text_helpers import contains_keyword


def calculate_monthly_equivalent(amount: float, frequency: Frequency) -> float:
    return amount * MONTHLY_MULTIPLIERS[Frequency(frequency)]


def is_housing_cost(recurring: RecurringTransaction) -> bool:
    return contains_keyword(recurring.description, HOUSING_KEYWORDS)


def identify_subscriptions(
    recurring_transactions: list[RecurringTransaction],
    categories: list[str] | None = None,
) -> list[SubscriptionItem]:
    """
    Recurring expenses minus fixed housing costs (rent, mortgage, lease...),
    each annotated with its monthly-equivalent cost.
    categories: optional whitelist applied after the housing filter.
    """
    result = []
    for rt in recurring_transactions:
        if rt.is_exclude or is_housing_cost(rt):
            continue
        if categories and rt.category not in categories:
            continue
        result.append(SubscriptionItem(
            **asdict(rt),
            monthly_equivalent=calculate_monthly_equivalent(rt.amount, rt.frequency),
        ))
    return result


def calculate_subscription_burn_rate(subscriptions: list[SubscriptionItem]) -> float:
    return sum(s.monthly_equivalent for s in subscriptions)
