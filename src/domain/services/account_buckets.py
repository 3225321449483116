"""Mutators for account, security and payee buckets.

Each mutator applies one economic effect of a transaction to a bucket and
records the resulting snapshot against the transaction, returning the
snapshot so callers can annotate it further.
"""

from decimal import Decimal
from logging import Logger

from src.domain.models.buckets import (
    Bucket,
    BucketKind,
    refresh_delta,
    register_transaction,
)
from src.domain.models.ledger import DateRange, TransactionHelper
from src.domain.models.values import (
    AccountAttribute,
    BucketValues,
    PayeeAttribute,
    SecurityAttribute,
)
from src.domain.services.pricing import DepositRate, SecurityPriceMap
from src.utils.decimal_utils import ZERO, value_at_price


def _require(bucket: Bucket, kind: BucketKind) -> None:
    if bucket.kind is not kind:
        raise TypeError(f"{bucket!r} is not a {kind.label} bucket")


# Accounts


def set_opening_balance(bucket: Bucket, balance: Decimal | None) -> None:
    """Seed the opening balance into both current and base valuation."""
    _require(bucket, BucketKind.ACCOUNT)
    if balance is None:
        return
    bucket.values.set_value(AccountAttribute.VALUATION, balance)
    bucket.base_values.set_value(AccountAttribute.VALUATION, balance)


def account_adjust_for_debit(
    bucket: Bucket,
    helper: TransactionHelper,
) -> BucketValues:
    """Money leaves the account."""
    _require(bucket, BucketKind.ACCOUNT)
    values = bucket.values
    values.adjust_counter(AccountAttribute.VALUATION, -helper.amount)
    values.adjust_counter(AccountAttribute.SPEND, helper.amount)
    return register_transaction(bucket, helper.transaction)


def account_adjust_for_credit(
    bucket: Bucket,
    helper: TransactionHelper,
) -> BucketValues:
    """Money reaches the account."""
    _require(bucket, BucketKind.ACCOUNT)
    bucket.values.adjust_counter(AccountAttribute.VALUATION, helper.amount)
    return register_transaction(bucket, helper.transaction)


def record_deposit_rate(bucket: Bucket, rate: DepositRate | None) -> None:
    """Record the rate (and its end date as maturity) applying to a deposit."""
    _require(bucket, BucketKind.ACCOUNT)
    if rate is None:
        return
    bucket.values.set_value(AccountAttribute.RATE, rate.rate)
    if rate.end_date is not None:
        bucket.values.set_value(AccountAttribute.MATURITY, rate.end_date)


# Securities


def adjust_security(
    bucket: Bucket,
    helper: TransactionHelper,
    *,
    units: Decimal | None = None,
    cost: Decimal | None = None,
    invested: Decimal | None = None,
    gains: Decimal | None = None,
    dividend: Decimal | None = None,
) -> BucketValues:
    """Apply deltas to a holding and record the snapshot.

    Args:
        bucket: Security bucket.
        helper: Transaction being analysed.
        units: Change in units held.
        cost: Change in cost basis.
        invested: Change in net cash invested.
        gains: Realised gains booked.
        dividend: Dividend income booked.

    Returns:
        BucketValues: Snapshot recorded against the transaction.
    """
    _require(bucket, BucketKind.SECURITY)
    values = bucket.values
    for attr, delta in (
        (SecurityAttribute.UNITS, units),
        (SecurityAttribute.COST, cost),
        (SecurityAttribute.INVESTED, invested),
        (SecurityAttribute.GAINS, gains),
        (SecurityAttribute.DIVIDEND, dividend),
    ):
        if delta:
            values.adjust_counter(attr, delta)
    return register_transaction(bucket, helper.transaction)


def record_security_price(
    snapshot: BucketValues,
    price: Decimal | None,
    units: Decimal,
) -> Decimal:
    """Annotate a snapshot with the price used and the resulting valuation."""
    valuation = value_at_price(units, price)
    if price is not None:
        snapshot.set_value(SecurityAttribute.PRICE, price)
    snapshot.set_value(SecurityAttribute.VALUATION, valuation)
    return valuation


def value_security(
    bucket: Bucket,
    prices: SecurityPriceMap,
    date_range: DateRange,
    logger: Logger,
) -> None:
    """Value a holding at both ends of ``date_range``.

    Sets PRICE and VALUATION on the base and current values, then derives
    ``VALUEDELTA``, ``MARKET = VALUEDELTA - INVESTED`` and
    ``PROFIT = MARKET + DIVIDEND``.
    """
    _require(bucket, BucketKind.SECURITY)
    security = bucket.entity
    opening, closing = prices.prices_for_range(security, date_range)
    base = bucket.base_values
    current = bucket.values

    base_units = base.get_units(SecurityAttribute.UNITS)
    units = current.get_units(SecurityAttribute.UNITS)
    if units and closing is None:
        logger.warning(f"No price available to value security {security.name}")

    if opening is not None:
        base.set_value(SecurityAttribute.PRICE, opening)
    base.set_value(
        SecurityAttribute.VALUATION,
        value_at_price(base_units, opening),
    )
    if closing is not None:
        current.set_value(SecurityAttribute.PRICE, closing)
    current.set_value(SecurityAttribute.VALUATION, value_at_price(units, closing))

    delta = current.get_money(SecurityAttribute.VALUATION) - base.get_money(
        SecurityAttribute.VALUATION
    )
    market = delta - current.get_money(SecurityAttribute.INVESTED)
    current.set_value(SecurityAttribute.VALUEDELTA, delta)
    current.set_value(SecurityAttribute.MARKET, market)
    current.set_value(
        SecurityAttribute.PROFIT,
        market + current.get_money(SecurityAttribute.DIVIDEND),
    )


# Payees


def _record_payee(bucket: Bucket, helper: TransactionHelper) -> BucketValues:
    refresh_delta(bucket)
    return register_transaction(bucket, helper.transaction)


def payee_adjust_for_debit(
    bucket: Bucket,
    helper: TransactionHelper,
) -> BucketValues:
    """The payee pays money out (salary, refund, dividend)."""
    _require(bucket, BucketKind.PAYEE)
    values = bucket.values
    if helper.category_type.is_expense:
        values.adjust_counter(PayeeAttribute.EXPENSE, -helper.amount)
    else:
        values.adjust_counter(PayeeAttribute.INCOME, helper.amount)
    if helper.tax_credit:
        values.adjust_counter(PayeeAttribute.INCOME, helper.tax_credit)
    if helper.nat_insurance:
        values.adjust_counter(PayeeAttribute.INCOME, helper.nat_insurance)
    if helper.charity_donation:
        values.adjust_counter(PayeeAttribute.INCOME, helper.charity_donation)
        values.adjust_counter(PayeeAttribute.EXPENSE, helper.charity_donation)
    return _record_payee(bucket, helper)


def payee_adjust_for_credit(
    bucket: Bucket,
    helper: TransactionHelper,
) -> BucketValues:
    """The payee receives money."""
    _require(bucket, BucketKind.PAYEE)
    values = bucket.values
    values.adjust_counter(PayeeAttribute.EXPENSE, helper.amount)
    if helper.category_type.is_expense and helper.tax_credit:
        values.adjust_counter(PayeeAttribute.EXPENSE, helper.tax_credit)
    return _record_payee(bucket, helper)


def payee_adjust_for_tax_credit(
    bucket: Bucket,
    helper: TransactionHelper,
) -> BucketValues:
    """Book tax deducted at source as income of the paying payee."""
    _require(bucket, BucketKind.PAYEE)
    if helper.tax_credit:
        bucket.values.adjust_counter(PayeeAttribute.INCOME, helper.tax_credit)
    return _record_payee(bucket, helper)


def payee_adjust_for_tax_payments(
    bucket: Bucket,
    helper: TransactionHelper,
) -> BucketValues | None:
    """Book tax credit and national insurance against the tax man.

    Deductions on income are money paid to the tax man; relief given on an
    expense is money received from it. Nothing is recorded when the
    transaction carries neither.
    """
    _require(bucket, BucketKind.PAYEE)
    value = (helper.tax_credit or ZERO) + (helper.nat_insurance or ZERO)
    if not value:
        return None
    if helper.category_type.is_expense:
        bucket.values.adjust_counter(PayeeAttribute.INCOME, value)
    else:
        bucket.values.adjust_counter(PayeeAttribute.EXPENSE, value)
    return _record_payee(bucket, helper)


def payee_add_expense(
    bucket: Bucket,
    helper: TransactionHelper,
    amount: Decimal,
) -> BucketValues:
    _require(bucket, BucketKind.PAYEE)
    bucket.values.adjust_counter(PayeeAttribute.EXPENSE, amount)
    return _record_payee(bucket, helper)


def payee_subtract_expense(
    bucket: Bucket,
    helper: TransactionHelper,
    amount: Decimal,
) -> BucketValues:
    _require(bucket, BucketKind.PAYEE)
    bucket.values.adjust_counter(PayeeAttribute.EXPENSE, -amount)
    return _record_payee(bucket, helper)


__all__ = [
    "set_opening_balance",
    "account_adjust_for_debit",
    "account_adjust_for_credit",
    "record_deposit_rate",
    "adjust_security",
    "record_security_price",
    "value_security",
    "payee_adjust_for_debit",
    "payee_adjust_for_credit",
    "payee_adjust_for_tax_credit",
    "payee_adjust_for_tax_payments",
    "payee_add_expense",
    "payee_subtract_expense",
]
