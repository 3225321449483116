"""Workings for transactions that move units, cost or cash of a holding.

Every case adjusts the holding's ``UNITS``, ``COST``, ``INVESTED``, ``GAINS``
and ``DIVIDEND`` so that ``INVESTED`` only changes by cash actually moving
between the holding and the rest of the ledger, while realised gains are
booked to the gains categories.
"""

from decimal import Decimal

from src.domain.constants import LARGE_TRANSACTION_RATE, LARGE_TRANSACTION_VALUE
from src.domain.errors import LogicError
from src.domain.models.ledger import CategoryClass, Party, TransactionHelper
from src.domain.models.values import SecurityAttribute
from src.domain.services.account_buckets import adjust_security, record_security_price
from src.domain.services.bookings import Bookings
from src.utils.decimal_utils import ZERO, value_at_price, value_at_rate, value_at_weight

_DIVIDEND_CLASSES = frozenset(
    {
        CategoryClass.DIVIDEND,
        CategoryClass.SHAREDIVIDEND,
        CategoryClass.UNITTRUSTDIVIDEND,
        CategoryClass.TAXFREEDIVIDEND,
    }
)
_TRANSFER_CLASSES = frozenset(
    {
        CategoryClass.TRANSFER,
        CategoryClass.EXPENSE,
        CategoryClass.INHERITED,
        CategoryClass.OTHERINCOME,
    }
)


def is_large_cash(amount: Decimal, holding_value: Decimal) -> bool:
    """Return True when cash is material against the holding's value.

    Cash counts as large only above both the absolute limit and the
    percentage-of-value limit.
    """
    portion = value_at_rate(holding_value, LARGE_TRANSACTION_RATE)
    return amount > LARGE_TRANSACTION_VALUE and amount > portion


class SecurityEventAnalyser:
    """Dispatches security transactions to the matching working.

    Args:
        bookings: Shared booking rules for the analysis being filled.
    """

    def __init__(self, bookings: Bookings) -> None:
        self._bookings = bookings
        self._prices = bookings.analysis.prices

    def process(self, helper: TransactionHelper) -> None:
        """Analyse a transaction with a holding on either side.

        Raises:
            LogicError: The category class has no working for this pairing.
        """
        debit, credit = helper.debit, helper.credit
        category_class = helper.category_class
        if debit.has_units and credit.has_units:
            self._process_debit_credit(helper, category_class)
        elif debit.has_units:
            self._process_debit(helper, category_class)
        elif category_class in _TRANSFER_CLASSES or (
            category_class is CategoryClass.STOCKRIGHTSTAKEN
        ):
            self.transfer_in(helper)
        else:
            raise LogicError(category_class)

    def _process_debit_credit(
        self,
        helper: TransactionHelper,
        category_class: CategoryClass,
    ) -> None:
        if category_class in (CategoryClass.STOCKSPLIT, CategoryClass.STOCKADJUST):
            self.units_adjust(helper)
        elif category_class is CategoryClass.STOCKDEMERGER:
            self.demerger(helper)
        elif category_class is CategoryClass.STOCKTAKEOVER:
            self.takeover(helper)
        elif category_class in _DIVIDEND_CLASSES:
            self.dividend(helper)
        elif category_class is CategoryClass.STOCKRIGHTSTAKEN:
            self.transfer_in(helper)
        elif category_class in _TRANSFER_CLASSES:
            if helper.debit.is_life_bond:
                self.taxable_gain(helper)
            else:
                self.stock_exchange(helper)
        else:
            raise LogicError(category_class)

    def _process_debit(
        self,
        helper: TransactionHelper,
        category_class: CategoryClass,
    ) -> None:
        if category_class is CategoryClass.STOCKRIGHTSWAIVED:
            self.rights_waived(helper)
        elif category_class in _DIVIDEND_CLASSES:
            self.dividend(helper)
        elif category_class in _TRANSFER_CLASSES:
            if helper.debit.is_life_bond:
                self.taxable_gain(helper)
            else:
                self.transfer_out(helper)
        else:
            raise LogicError(category_class)

    # Workings

    def units_adjust(self, helper: TransactionHelper) -> None:
        """Stock split or unit correction: units only, no cost or cash."""
        transaction = helper.transaction
        delta = transaction.credit_units
        if delta is None:
            delta = -(transaction.debit_units or ZERO)
        adjust_security(
            self._bookings.security_bucket(helper.credit), helper, units=delta
        )

    def transfer_in(self, helper: TransactionHelper) -> None:
        """Cash (or rights) bought into a holding from an account or payee."""
        self._credit_transfer_in(helper)
        self._bookings.tax_payments(helper)
        self._bookings.debit_party(helper)
        category = helper.transaction.category
        if not category.is_transfer:
            self._bookings.adjust_categories(helper, category)

    def _credit_transfer_in(self, helper: TransactionHelper) -> None:
        amount = helper.amount
        adjust_security(
            self._bookings.security_bucket(helper.credit),
            helper,
            units=helper.transaction.credit_units,
            cost=amount,
            invested=amount,
        )

    def transfer_out(self, helper: TransactionHelper) -> None:
        """Sale or withdrawal from a holding into an account or payee."""
        self._debit_transfer_out(helper)
        self._bookings.credit_party(helper)
        category = helper.transaction.category
        if not category.is_transfer:
            self._bookings.adjust_categories(helper, category)

    def stock_exchange(self, helper: TransactionHelper) -> None:
        """Switch from one holding to another for the same cash amount."""
        self._debit_transfer_out(helper)
        self._credit_transfer_in(helper)

    def _release_cost(
        self,
        helper: TransactionHelper,
    ) -> tuple[Decimal, Decimal, Decimal]:
        """Return ``(unit delta, cost reduction, gains)`` for a withdrawal.

        Cost is released in proportion to the units removed, or pound for
        pound when no units move, and never beyond the cost held.
        """
        values = self._bookings.security_bucket(helper.debit).values
        amount = helper.amount
        cost = values.get_money(SecurityAttribute.COST)
        units = helper.transaction.debit_units
        reduction = amount
        if units is not None:
            reduction = value_at_weight(
                cost, units, values.get_units(SecurityAttribute.UNITS)
            )
        reduction = min(reduction, cost)
        return -(units or ZERO), reduction, amount - reduction

    def _debit_transfer_out(self, helper: TransactionHelper) -> None:
        units, reduction, gains = self._release_cost(helper)
        adjust_security(
            self._bookings.security_bucket(helper.debit),
            helper,
            units=units,
            cost=-reduction,
            invested=-helper.amount,
            gains=gains,
        )
        if gains:
            self._bookings.standard_gain(helper, helper.debit, gains)

    def taxable_gain(self, helper: TransactionHelper) -> None:
        """Withdrawal from a life bond: a chargeable event for income tax."""
        units, reduction, gains = self._release_cost(helper)
        security = helper.debit
        adjust_security(
            self._bookings.security_bucket(security),
            helper,
            units=units,
            cost=-reduction,
            invested=-helper.amount,
            gains=gains,
        )
        if security.parent is not None:
            self._bookings.payee_tax_credit(helper, security.parent)
        self._bookings.credit_party(helper)
        self._bookings.taxable_gain(helper, reduction, gains)
        self._bookings.tax_payments(helper)
        self._bookings.analysis.charges.add_event(helper.transaction, gains)

    def rights_waived(self, helper: TransactionHelper) -> None:
        """Cash received for rights not taken up.

        A large payment releases cost in proportion to its share of the
        combined cash and holding value; otherwise the whole payment comes
        off cost.
        """
        security = helper.debit
        bucket = self._bookings.security_bucket(security)
        values = bucket.values
        amount = helper.amount
        cost = values.get_money(SecurityAttribute.COST)
        price = self._prices.valuation_price(security, helper.date)
        value = value_at_price(values.get_units(SecurityAttribute.UNITS), price)

        if is_large_cash(amount, value):
            reduction = value_at_weight(cost, amount, amount + value)
        else:
            reduction = amount
        reduction = min(reduction, cost)
        gains = amount - reduction

        snapshot = adjust_security(
            bucket,
            helper,
            cost=-reduction,
            invested=-amount,
            gains=gains,
        )
        units = values.get_units(SecurityAttribute.UNITS)
        record_security_price(snapshot, price, units)
        if gains:
            self._bookings.standard_gain(helper, security, gains)
        self._bookings.credit_party(helper)

    def demerger(self, helper: TransactionHelper) -> None:
        """Part of a holding's cost moves to a newly demerged holding."""
        transaction = helper.transaction
        debit_bucket = self._bookings.security_bucket(helper.debit)
        cost = debit_bucket.values.get_money(SecurityAttribute.COST)
        dilution = transaction.dilution
        if dilution is None:
            dilution = Decimal("1")
        delta = value_at_rate(cost, dilution) - cost

        units = transaction.debit_units
        adjust_security(
            debit_bucket,
            helper,
            units=-units if units is not None else None,
            cost=delta,
            invested=delta,
        )
        adjust_security(
            self._bookings.security_bucket(helper.credit),
            helper,
            units=transaction.credit_units,
            cost=-delta,
            invested=-delta,
        )

    def takeover(self, helper: TransactionHelper) -> None:
        third_party = helper.transaction.third_party
        if third_party is not None and helper.amount:
            self._stock_and_cash_takeover(helper, third_party)
        else:
            self._stock_only_takeover(helper)

    def _stock_only_takeover(self, helper: TransactionHelper) -> None:
        debit, credit = helper.debit, helper.credit
        debit_bucket = self._bookings.security_bucket(debit)
        credit_bucket = self._bookings.security_bucket(credit)
        debit_values = debit_bucket.values
        debit_price = self._prices.valuation_price(debit, helper.date)
        credit_price = self._prices.valuation_price(credit, helper.date)

        units = debit_values.get_units(SecurityAttribute.UNITS)
        cost = debit_values.get_money(SecurityAttribute.COST)
        credit_units = helper.transaction.credit_units or ZERO
        stock_value = value_at_price(credit_units, credit_price)

        snapshot = adjust_security(
            credit_bucket,
            helper,
            units=credit_units,
            cost=cost,
            invested=stock_value,
        )
        record_security_price(snapshot, credit_price, credit_units)

        snapshot = adjust_security(
            debit_bucket,
            helper,
            units=-units,
            cost=-cost,
            invested=-stock_value,
        )
        record_security_price(snapshot, debit_price, units)

    def _stock_and_cash_takeover(
        self,
        helper: TransactionHelper,
        third_party: Party,
    ) -> None:
        """Takeover paid partly in new stock and partly in cash.

        The cost carried to the new holding is weighted by the stock's share
        of the consideration when the cash is large; otherwise the cash comes
        off cost first. Any excess cash is a realised gain.
        """
        debit, credit = helper.debit, helper.credit
        amount = helper.amount
        debit_bucket = self._bookings.security_bucket(debit)
        credit_bucket = self._bookings.security_bucket(credit)
        debit_values = debit_bucket.values
        debit_price = self._prices.valuation_price(debit, helper.date)
        credit_price = self._prices.valuation_price(credit, helper.date)

        units = debit_values.get_units(SecurityAttribute.UNITS)
        debit_value = value_at_price(units, debit_price)
        credit_units = helper.transaction.credit_units or ZERO
        stock_value = value_at_price(credit_units, credit_price)
        cost = debit_values.get_money(SecurityAttribute.COST)

        if is_large_cash(amount, debit_value):
            cost_xfer = value_at_weight(cost, stock_value, amount + stock_value)
        elif amount > cost:
            cost_xfer = ZERO
        else:
            cost_xfer = cost - amount
        gains = amount - cost + cost_xfer

        snapshot = adjust_security(
            credit_bucket,
            helper,
            units=credit_units,
            cost=cost_xfer,
            invested=stock_value,
        )
        record_security_price(snapshot, credit_price, credit_units)

        snapshot = adjust_security(
            debit_bucket,
            helper,
            units=-units,
            cost=-cost,
            invested=-(stock_value + amount),
            gains=gains,
        )
        record_security_price(snapshot, debit_price, units)
        if gains:
            self._bookings.standard_gain(helper, debit, gains)
        self._bookings.credit_party(helper, third_party)

    def dividend(self, helper: TransactionHelper) -> None:
        """Dividend paid out to an account or re-invested in the holding."""
        security = helper.debit
        amount = helper.amount
        tax_credit = helper.tax_credit or ZERO
        category = self._bookings.implied.dividend_category(
            helper.transaction.category, security
        )
        if security.parent is not None:
            self._bookings.payee_bucket(security.parent)
            from_payee = helper.resolve(debit=security.parent)
            self._bookings.debit_party(from_payee)

        bucket = self._bookings.security_bucket(security)
        credit = helper.credit
        if credit.id == security.id:
            adjust_security(
                bucket,
                helper,
                units=helper.transaction.credit_units,
                cost=amount,
                invested=amount,
                dividend=tax_credit,
            )
        elif credit.has_units:
            adjust_security(bucket, helper, dividend=amount + tax_credit)
            self._credit_transfer_in(helper)
        else:
            adjust_security(bucket, helper, dividend=amount + tax_credit)
            self._bookings.credit_party(helper)
        self._bookings.tax_payments(helper)
        self._bookings.adjust_categories(helper, category)


__all__ = ["SecurityEventAnalyser", "is_large_cash"]
