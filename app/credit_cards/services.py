"""
Credit card service layer.

CreditCardService covers everything about a card that is not a plain
posting: limits, utilization, statements, interest and payments. Purchases
and refunds are ordinary LedgerService postings, routed through the card's
CC Payment category by ledger.routing.

Amounts owed are positive: a card's balance is credits minus debits.

Usage:
    from credit_cards.services import CreditCardService

    CreditCardService.configure_limit(card.id, credit_limit=500000, apr=Decimal("24.99"))
    CreditCardService.accrue_interest(card.id, date(2024, 3, 2))
    statement = CreditCardService.generate_statement(card.id, date(2024, 3, 31))
    CreditCardService.pay_credit_card(card.id, checking.id, statement.ending_balance)
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from django.conf import settings
from django.db.models import BigIntegerField, Case, Sum, Value, When
from django.db.models.functions import Coalesce
from django.utils import timezone

from budgeting.periods import add_months
from core.exceptions import BaseApplicationError, ValidationError
from core.services import BaseService
from credit_cards.choices import (
    AMOUNT_PAYMENT_TYPES,
    AutoPaymentType,
    CompoundingFrequency,
    InterestType,
    PaymentType,
    ScheduledPaymentStatus,
    UtilizationStatus,
)
from credit_cards.exceptions import (
    InvalidPaymentState,
    NotACreditCard,
    ScheduledPaymentNotFound,
    StatementNotFound,
    StatementPeriodClosed,
)
from credit_cards.interest import policy_for, round_cents, statement_close
from credit_cards.models import CreditCardLimit, CreditCardStatement, ScheduledPayment
from credit_cards.types import CardActivity, CreditCardSummary, InterestAccrual
from ledger.choices import AccountType, ActionType, SystemRole, TransactionKind
from ledger.exceptions import InvalidAccountForOperation
from ledger.models import Account, Transaction
from ledger.services import AccountService, LedgerService, record_action
from ledger.types import validate_amount

if TYPE_CHECKING:
    from datetime import date
    from typing import Any

    from django.db.models import QuerySet

LIMIT_FIELDS = (
    "apr",
    "warning_threshold_percent",
    "interest_type",
    "compounding_frequency",
    "statement_day_of_month",
    "due_date_offset_days",
    "grace_period_days",
    "minimum_payment_percent",
    "minimum_payment_flat",
    "auto_payment_enabled",
    "auto_payment_type",
    "auto_payment_amount",
    "auto_payment_date",
    "auto_payment_bank_account_id",
    "notes",
)


def statement_snapshot(statement: CreditCardStatement) -> dict[str, Any]:
    return {
        "period_start": statement.period_start.isoformat(),
        "period_end": statement.period_end.isoformat(),
        "previous_balance": statement.previous_balance,
        "ending_balance": statement.ending_balance,
        "minimum_payment_due": statement.minimum_payment_due,
        "due_date": statement.due_date.isoformat(),
    }


class CreditCardService(BaseService):
    """
    Service for credit card limits, statements, interest and payments.

    All methods are class methods - no instance state is maintained.
    """

    # ==========================================================================
    # Lookups
    # ==========================================================================

    @classmethod
    def get_card(cls, account_id: uuid.UUID, ledger_id: uuid.UUID | None = None) -> Account:
        """
        Get a credit card account.

        Raises:
            AccountNotFound: Unknown id
            NotACreditCard: The account is not a card
        """
        account = AccountService.get_account(account_id, ledger_id=ledger_id)
        if not account.is_credit_card:
            raise NotACreditCard(
                f"{account.name!r} is not a credit card",
                details={"account_id": str(account.id)},
            )
        return account

    @staticmethod
    def active_limit(account_id: uuid.UUID) -> CreditCardLimit | None:
        return CreditCardLimit.objects.filter(credit_card_id=account_id, is_active=True).first()

    @staticmethod
    def current_statement(account_id: uuid.UUID) -> CreditCardStatement | None:
        return CreditCardStatement.objects.filter(credit_card_id=account_id, is_current=True).first()

    @staticmethod
    def statements(account_id: uuid.UUID) -> QuerySet:
        return CreditCardStatement.objects.filter(credit_card_id=account_id)

    @staticmethod
    def get_statement(account_id: uuid.UUID, statement_id: uuid.UUID) -> CreditCardStatement:
        statement = CreditCardStatement.objects.filter(id=statement_id, credit_card_id=account_id).first()
        if statement is None:
            raise StatementNotFound(
                f"Statement {statement_id} not found",
                details={"statement_id": str(statement_id)},
            )
        return statement

    @staticmethod
    def interest_bearing_cards() -> QuerySet:
        """Cards with an active limit and a positive APR."""
        return Account.objects.filter(
            credit_limits__is_active=True,
            credit_limits__apr__gt=0,
            is_active=True,
        ).distinct()

    @staticmethod
    def cards_closing_on(day: date) -> list[Account]:
        """Cards whose billing cycle closes on day."""
        limits = CreditCardLimit.objects.filter(is_active=True, credit_card__is_active=True).select_related(
            "credit_card"
        )
        return [limit.credit_card for limit in limits if statement_close(limit, day) == day]

    # ==========================================================================
    # Limits
    # ==========================================================================

    @classmethod
    def configure_limit(
        cls,
        account_id: uuid.UUID,
        credit_limit: int,
        user: Any = None,
        **config: Any,
    ) -> CreditCardLimit:
        """
        Replace the card's active limit configuration.

        Args:
            account_id: Card account
            credit_limit: Limit in cents (0 means no limit)
            **config: Any CreditCardLimit setting (apr, statement_day_of_month, ...)

        Returns:
            The new active CreditCardLimit

        Raises:
            NotACreditCard: account_id is not a card
            ValidationError: Unknown setting or out-of-range value
        """
        card = cls.get_card(account_id)
        if "auto_payment_bank_account" in config:
            bank = config.pop("auto_payment_bank_account")
            config["auto_payment_bank_account_id"] = getattr(bank, "id", bank)
        unknown = set(config) - set(LIMIT_FIELDS)
        if unknown:
            raise ValidationError(
                f"Unknown limit settings: {', '.join(sorted(unknown))}",
                error_code="INVALID_LIMIT_SETTING",
                details={"fields": sorted(unknown)},
            )
        config = {key: value for key, value in config.items() if value is not None}
        cls._validate_limit(card, credit_limit, config)

        with cls.atomic():
            previous = CreditCardLimit.objects.select_for_update().filter(credit_card=card, is_active=True).first()
            if previous is not None:
                previous.is_active = False
                previous.save(update_fields=["is_active", "updated_at"])
            limit = CreditCardLimit.objects.create(credit_card=card, credit_limit=credit_limit, **config)
            record_action(
                card.ledger_id,
                ActionType.CONFIGURE_LIMIT,
                "credit_card_limit",
                limit.id,
                user=user,
                old_data={"credit_limit": previous.credit_limit, "apr": str(previous.apr)} if previous else None,
                new_data={"credit_limit": limit.credit_limit, "apr": str(limit.apr)},
            )

        cls.get_logger().info(
            "Configured credit limit",
            extra={"account_id": str(card.id), "credit_limit": credit_limit},
        )
        return limit

    @staticmethod
    def _validate_limit(card: Account, credit_limit: int, config: dict[str, Any]) -> None:
        if isinstance(credit_limit, bool) or not isinstance(credit_limit, int) or credit_limit < 0:
            raise ValidationError(
                "credit_limit must be a non-negative integer number of cents",
                error_code="INVALID_AMOUNT",
                details={"credit_limit": repr(credit_limit)},
            )
        apr = config.get("apr")
        if apr is not None and not Decimal(0) <= Decimal(str(apr)) <= Decimal(100):
            raise ValidationError("apr must be between 0 and 100", error_code="INVALID_APR")
        day = config.get("statement_day_of_month")
        if day is not None and not 1 <= day <= 31:
            raise ValidationError("statement_day_of_month must be 1-31", error_code="INVALID_STATEMENT_DAY")
        threshold = config.get("warning_threshold_percent")
        if threshold is not None and not 1 <= threshold <= 100:
            raise ValidationError(
                "warning_threshold_percent must be 1-100", error_code="INVALID_WARNING_THRESHOLD"
            )
        for field, choices in (
            ("interest_type", InterestType.values),
            ("compounding_frequency", CompoundingFrequency.values),
            ("auto_payment_type", AutoPaymentType.values),
        ):
            if field in config and config[field] not in choices:
                raise ValidationError(f"Invalid {field}", error_code="INVALID_LIMIT_SETTING", details={field: config[field]})

        if config.get("auto_payment_enabled"):
            if not config.get("auto_payment_type") or not config.get("auto_payment_bank_account_id"):
                raise ValidationError(
                    "Auto-payment needs a payment type and a bank account",
                    error_code="AUTO_PAYMENT_INCOMPLETE",
                )
            if config["auto_payment_type"] == AutoPaymentType.FIXED_AMOUNT and not config.get("auto_payment_amount"):
                raise ValidationError(
                    "Fixed auto-payments need an amount",
                    error_code="AUTO_PAYMENT_INCOMPLETE",
                )
            bank = AccountService.get_account(config["auto_payment_bank_account_id"], ledger_id=card.ledger_id)
            if bank.type != AccountType.ASSET:
                raise InvalidAccountForOperation(
                    "Auto-payments are drawn from a bank account",
                    details={"account_id": str(bank.id)},
                )

    @classmethod
    def remove_limit(cls, account_id: uuid.UUID, user: Any = None) -> None:
        """Deactivate the card's active limit; the card reverts to no limit."""
        card = cls.get_card(account_id)
        with cls.atomic():
            updated = CreditCardLimit.objects.filter(credit_card=card, is_active=True).update(
                is_active=False, updated_at=timezone.now()
            )
        if updated:
            cls.get_logger().info("Removed credit limit", extra={"account_id": str(card.id)})

    # ==========================================================================
    # Utilization
    # ==========================================================================

    @staticmethod
    def utilization(balance: int, credit_limit: int | None) -> Decimal | None:
        """
        balance / credit_limit * 100, to two decimals.

        Returns None (not applicable) when there is no limit.
        """
        if not credit_limit:
            return None
        return (Decimal(balance) * 100 / Decimal(credit_limit)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    @staticmethod
    def utilization_status(utilization: Decimal | None, warning_threshold_percent: int | None = None) -> str:
        """
        Classify utilization.

            good        below the warning threshold
            warning     at or above the warning threshold, below critical
            critical    at or above CREDIT_CARD_CRITICAL_UTILIZATION_PERCENT, below 100
            over_limit  at or above 100
        """
        if utilization is None:
            return UtilizationStatus.NOT_APPLICABLE
        if warning_threshold_percent is None:
            warning_threshold_percent = settings.BUDGET_DEFAULT_WARNING_THRESHOLD_PERCENT
        if utilization >= 100:
            return UtilizationStatus.OVER_LIMIT
        if utilization >= settings.CREDIT_CARD_CRITICAL_UTILIZATION_PERCENT:
            return UtilizationStatus.CRITICAL
        if utilization >= warning_threshold_percent:
            return UtilizationStatus.WARNING
        return UtilizationStatus.GOOD

    @classmethod
    def card_summary(cls, account_id: uuid.UUID) -> CreditCardSummary:
        """Balance, limit, utilization and CC Payment funding of a card."""
        card = cls.get_card(account_id)
        limit = cls.active_limit(card.id)
        balance = card.get_balance()
        credit_limit = limit.credit_limit if limit is not None else None
        utilization = cls.utilization(balance, credit_limit)
        payment_balance = card.payment_category.get_balance() if card.payment_category_id else 0

        return CreditCardSummary(
            account_id=card.id,
            name=card.name,
            balance=balance,
            credit_limit=credit_limit,
            available_credit=credit_limit - balance if credit_limit else None,
            utilization_percent=utilization,
            status=cls.utilization_status(utilization, limit.warning_threshold_percent if limit else None),
            payment_category_id=card.payment_category_id,
            payment_category_balance=payment_balance,
            funding_shortfall=max(0, balance - payment_balance),
            current_statement=cls.current_statement(card.id),
        )

    # ==========================================================================
    # Statements
    # ==========================================================================

    @staticmethod
    def card_activity(card: Account, start: date, end: date) -> CardActivity:
        """
        Sum the card's postings in [start, end] by what they represent.

        Reversals are classified with the posting they undo, so a reversed
        payment nets out of payments rather than counting as a purchase.
        """
        rows = (
            Transaction.objects.counted()
            .touching(card)
            .in_period(start, end)
            .with_effective_kind()
            .order_by()
            .values("effective_kind")
            .annotate(
                credits=Coalesce(
                    Sum(
                        Case(
                            When(credit_account=card, then="amount"),
                            default=Value(0),
                            output_field=BigIntegerField(),
                        )
                    ),
                    Value(0),
                    output_field=BigIntegerField(),
                ),
                debits=Coalesce(
                    Sum(
                        Case(
                            When(debit_account=card, then="amount"),
                            default=Value(0),
                            output_field=BigIntegerField(),
                        )
                    ),
                    Value(0),
                    output_field=BigIntegerField(),
                ),
            )
        )
        totals = {"purchases": 0, "payments": 0, "interest": 0, "fees": 0}
        for row in rows:
            net = row["credits"] - row["debits"]
            if row["effective_kind"] == TransactionKind.INTEREST:
                totals["interest"] += net
            elif row["effective_kind"] == TransactionKind.FEE:
                totals["fees"] += net
            elif row["effective_kind"] == TransactionKind.CARD_PAYMENT:
                totals["payments"] -= net
            else:
                totals["purchases"] += net
        return CardActivity(**totals)

    @staticmethod
    def minimum_payment(ending_balance: int, limit: CreditCardLimit) -> int:
        """min(ending, max(flat, ending * percent / 100)); 0 when nothing is owed."""
        if ending_balance <= 0:
            return 0
        percent_amount = round_cents(Decimal(ending_balance) * limit.minimum_payment_percent / 100)
        return min(ending_balance, max(limit.minimum_payment_flat, percent_amount))

    @classmethod
    def generate_statement(
        cls,
        account_id: uuid.UUID,
        as_of_date: date,
        user: Any = None,
    ) -> CreditCardStatement:
        """
        Close the current billing cycle and open a statement ending on as_of_date.

        The new statement covers the day after the previous statement's
        period_end through as_of_date (a month back when there is none).
        Cards without a limit use the default minimum payment and due date
        settings. With auto-payment enabled, the payment is scheduled in the
        same transaction.

        Raises:
            StatementPeriodClosed: as_of_date is not after the current period_end
        """
        card = cls.get_card(account_id)
        active = cls.active_limit(card.id)
        # Cards without a limit bill with the default settings
        limit = active or CreditCardLimit(credit_card=card, credit_limit=0)

        with cls.atomic():
            Account.objects.select_for_update().filter(id=card.id).first()
            previous = (
                CreditCardStatement.objects.select_for_update()
                .filter(credit_card=card, is_current=True)
                .first()
            )
            if previous is not None and as_of_date <= previous.period_end:
                raise StatementPeriodClosed(
                    f"Statement period already closed through {previous.period_end}",
                    details={"period_end": previous.period_end.isoformat(), "as_of_date": as_of_date.isoformat()},
                )

            if previous is not None:
                period_start = previous.period_end + timedelta(days=1)
                previous_balance = previous.ending_balance
                previous.is_current = False
                previous.save(update_fields=["is_current", "updated_at"])
            else:
                period_start = add_months(as_of_date, -1) + timedelta(days=1)
                previous_balance = card.get_balance(as_of=period_start - timedelta(days=1))

            activity = cls.card_activity(card, period_start, as_of_date)
            ending = previous_balance + activity.net_change
            statement = CreditCardStatement.objects.create(
                credit_card=card,
                period_start=period_start,
                period_end=as_of_date,
                previous_balance=previous_balance,
                purchases_amount=activity.purchases,
                payments_amount=activity.payments,
                interest_charged=activity.interest,
                fees_charged=activity.fees,
                ending_balance=ending,
                minimum_payment_due=cls.minimum_payment(ending, limit),
                due_date=as_of_date + timedelta(days=limit.due_date_offset_days),
                is_current=True,
            )
            record_action(
                card.ledger_id,
                ActionType.GENERATE_STATEMENT,
                "credit_card_statement",
                statement.id,
                user=user,
                new_data=statement_snapshot(statement),
            )

            if active is not None and active.auto_payment_enabled and ending > 0:
                cls._schedule_auto_payment(card, limit, statement)

        cls.get_logger().info(
            "Generated statement",
            extra={
                "account_id": str(card.id),
                "statement_id": str(statement.id),
                "ending_balance": statement.ending_balance,
            },
        )
        return statement

    @classmethod
    def _schedule_auto_payment(
        cls,
        card: Account,
        limit: CreditCardLimit,
        statement: CreditCardStatement,
    ) -> ScheduledPayment | None:
        if limit.auto_payment_bank_account_id is None:
            cls.get_logger().warning(
                "Auto-payment enabled without a bank account",
                extra={"account_id": str(card.id)},
            )
            return None

        scheduled_date = statement.due_date
        if limit.auto_payment_date:
            # First matching day after the statement closes, never after the due date
            candidate = add_months(statement.period_end, 0, anchor_day=limit.auto_payment_date)
            if candidate <= statement.period_end:
                candidate = add_months(statement.period_end, 1, anchor_day=limit.auto_payment_date)
            scheduled_date = min(candidate, statement.due_date)

        return ScheduledPayment.objects.create(
            credit_card=card,
            bank_account_id=limit.auto_payment_bank_account_id,
            statement=statement,
            scheduled_date=scheduled_date,
            payment_type=limit.auto_payment_type,
            payment_amount=limit.auto_payment_amount if limit.auto_payment_type == AutoPaymentType.FIXED_AMOUNT else None,
        )

    # ==========================================================================
    # Interest
    # ==========================================================================

    @classmethod
    def _paid_in_full(cls, card: Account, limit: CreditCardLimit, statement: CreditCardStatement, day: date) -> bool:
        """Whether payments after the statement closed cover its ending balance."""
        if statement.ending_balance <= 0:
            return True
        deadline = min(day, statement.due_date + timedelta(days=limit.grace_period_days))
        if deadline <= statement.period_end:
            return False
        paid = cls.card_activity(card, statement.period_end + timedelta(days=1), deadline).payments
        return paid >= statement.ending_balance

    @classmethod
    def accrue_interest(cls, account_id: uuid.UUID, accrual_date: date) -> InterestAccrual:
        """
        Charge one accrual of interest on a card.

        Skips (accrued=False, with a reason) when the card has no limit, the
        APR is 0, nothing is owed, the current statement was paid in full,
        or it is not an accrual day for the card's compounding frequency.
        Interest is posted as Unassigned -> card, so it shows up as spending
        the CC Payment category still has to be funded for.

        Idempotent per card and day (key "interest:<card>:<date>").
        """
        card = cls.get_card(account_id)
        key = f"interest:{card.id}:{accrual_date.isoformat()}"
        existing = Transaction.objects.filter(ledger_id=card.ledger_id, idempotency_key=key).first()
        if existing is not None:
            return InterestAccrual(card.id, accrual_date, accrued=True, amount=existing.amount, transaction=existing)

        def skipped(reason: str) -> InterestAccrual:
            return InterestAccrual(card.id, accrual_date, accrued=False, reason=reason)

        limit = cls.active_limit(card.id)
        if limit is None:
            return skipped("no_limit")
        if limit.apr <= 0:
            return skipped("zero_apr")
        policy = policy_for(limit.compounding_frequency)
        if not policy.is_accrual_day(limit, accrual_date):
            return skipped("not_accrual_day")
        if card.get_balance(as_of=accrual_date) <= 0:
            return skipped("no_balance")
        statement = (
            CreditCardStatement.objects.filter(credit_card=card, period_end__lt=accrual_date)
            .order_by("-period_end")
            .first()
        )
        if statement is not None and cls._paid_in_full(card, limit, statement, accrual_date):
            return skipped("grace_period")

        if statement is not None:
            cycle_start = statement.period_end + timedelta(days=1)
        else:
            cycle_start = add_months(accrual_date, -1) + timedelta(days=1)
        amount = policy.interest_for(card, limit, accrual_date, cycle_start)
        if amount <= 0:
            return skipped("zero_interest")

        unassigned = AccountService.system_account(card.ledger_id, SystemRole.UNASSIGNED)
        txn = LedgerService.post(
            ledger_id=card.ledger_id,
            debit_account_id=unassigned.id,
            credit_account_id=card.id,
            amount=amount,
            date=accrual_date,
            description=f"Interest charge ({limit.apr}% APR)",
            kind=TransactionKind.INTEREST,
            idempotency_key=key,
        )
        cls.get_logger().info(
            "Accrued interest",
            extra={"account_id": str(card.id), "accrual_date": accrual_date.isoformat(), "amount": amount},
        )
        return InterestAccrual(card.id, accrual_date, accrued=True, amount=amount, transaction=txn)

    # ==========================================================================
    # Payments
    # ==========================================================================

    @classmethod
    def pay_credit_card(
        cls,
        account_id: uuid.UUID,
        bank_account_id: uuid.UUID,
        amount: int,
        date: date | None = None,
        description: str = "",
        user: Any = None,
        idempotency_key: str | None = None,
    ) -> Transaction:
        """
        Pay a card from a bank account.

        Posted as a card payment, so the CC Payment category is drawn down
        by the same amount as the card balance.

        Raises:
            NotACreditCard: account_id is not a card
            InvalidAccountForOperation: bank_account_id is not a bank account
        """
        validate_amount(amount)
        card = cls.get_card(account_id)
        bank = AccountService.get_account(bank_account_id, ledger_id=card.ledger_id)
        if bank.type != AccountType.ASSET:
            raise InvalidAccountForOperation(
                "Card payments are drawn from a bank account",
                details={"account_id": str(bank.id), "type": bank.type},
            )
        return LedgerService.post(
            ledger_id=card.ledger_id,
            debit_account_id=card.id,
            credit_account_id=bank.id,
            amount=amount,
            date=date or timezone.localdate(),
            description=description or f"Payment to {card.name}",
            kind=TransactionKind.CARD_PAYMENT,
            idempotency_key=idempotency_key,
            user=user,
        )

    @classmethod
    def schedule_payment(
        cls,
        account_id: uuid.UUID,
        bank_account_id: uuid.UUID,
        payment_type: str,
        scheduled_date: date | None = None,
        payment_amount: int | None = None,
        statement_id: uuid.UUID | None = None,
    ) -> ScheduledPayment:
        """
        Schedule a card payment.

        scheduled_date defaults to the statement's due date, or today.

        Raises:
            ValidationError: Unknown type, or a missing amount for fixed/custom payments
            StatementNotFound: statement_id is not one of the card's statements
        """
        card = cls.get_card(account_id)
        if payment_type not in PaymentType.values:
            raise ValidationError(
                f"Invalid payment_type: {payment_type}",
                error_code="INVALID_PAYMENT_TYPE",
                details={"payment_type": payment_type},
            )
        if payment_type in AMOUNT_PAYMENT_TYPES:
            validate_amount(payment_amount, "payment_amount")
        else:
            payment_amount = None
        bank = AccountService.get_account(bank_account_id, ledger_id=card.ledger_id)
        if bank.type != AccountType.ASSET:
            raise InvalidAccountForOperation(
                "Card payments are drawn from a bank account",
                details={"account_id": str(bank.id), "type": bank.type},
            )
        statement = cls.get_statement(card.id, statement_id) if statement_id else None
        if scheduled_date is None:
            scheduled_date = statement.due_date if statement else timezone.localdate()

        payment = ScheduledPayment.objects.create(
            credit_card=card,
            bank_account=bank,
            statement=statement,
            scheduled_date=scheduled_date,
            payment_type=payment_type,
            payment_amount=payment_amount,
        )
        cls.get_logger().info(
            "Scheduled card payment",
            extra={"payment_id": str(payment.id), "account_id": str(card.id), "scheduled_date": str(scheduled_date)},
        )
        return payment

    @staticmethod
    def get_scheduled_payment(payment_id: uuid.UUID) -> ScheduledPayment:
        payment = ScheduledPayment.objects.filter(id=payment_id).first()
        if payment is None:
            raise ScheduledPaymentNotFound(
                f"Scheduled payment {payment_id} not found",
                details={"payment_id": str(payment_id)},
            )
        return payment

    @classmethod
    def cancel_scheduled_payment(cls, payment_id: uuid.UUID) -> ScheduledPayment:
        """
        Raises:
            InvalidPaymentState: The payment is no longer scheduled
        """
        with cls.atomic():
            payment = cls._lock_payment(payment_id)
            if payment.status != ScheduledPaymentStatus.SCHEDULED:
                raise InvalidPaymentState(
                    f"Cannot cancel a {payment.status} payment",
                    details={"payment_id": str(payment.id), "status": payment.status},
                )
            payment.cancel()
            payment.save()
        cls.get_logger().info("Cancelled scheduled payment", extra={"payment_id": str(payment.id)})
        return payment

    @classmethod
    def _lock_payment(cls, payment_id: uuid.UUID) -> ScheduledPayment:
        payment = ScheduledPayment.objects.select_for_update().filter(id=payment_id).first()
        if payment is None:
            raise ScheduledPaymentNotFound(
                f"Scheduled payment {payment_id} not found",
                details={"payment_id": str(payment_id)},
            )
        return payment

    @classmethod
    def _resolve_amount(cls, payment: ScheduledPayment) -> int:
        if payment.payment_type in AMOUNT_PAYMENT_TYPES:
            return payment.payment_amount or 0
        owed = max(0, payment.credit_card.get_balance())
        if payment.payment_type == PaymentType.FULL_BALANCE:
            return owed
        statement = payment.statement or cls.current_statement(payment.credit_card_id)
        minimum = statement.minimum_payment_due if statement else 0
        return min(minimum, owed)

    @classmethod
    def process_scheduled_payment(cls, payment_id: uuid.UUID) -> ScheduledPayment:
        """
        Post a scheduled payment.

        The amount is resolved now: the statement minimum (capped at what is
        owed), the full current balance, or the fixed amount. A payment that
        resolves to 0 completes without posting. A rejected posting marks the
        payment failed instead of raising.

        Idempotent: the posting uses key "scheduled-payment:<id>" and a
        completed payment is returned unchanged.

        Raises:
            InvalidPaymentState: The payment was cancelled or already failed
        """
        with cls.atomic():
            payment = cls._lock_payment(payment_id)
            if payment.status == ScheduledPaymentStatus.COMPLETED:
                return payment
            if payment.status != ScheduledPaymentStatus.SCHEDULED:
                raise InvalidPaymentState(
                    f"Cannot process a {payment.status} payment",
                    details={"payment_id": str(payment.id), "status": payment.status},
                )

            amount = cls._resolve_amount(payment)
            if amount <= 0:
                payment.complete(0)
                payment.save()
                return payment

            try:
                txn = cls.pay_credit_card(
                    payment.credit_card_id,
                    payment.bank_account_id,
                    amount,
                    date=payment.scheduled_date,
                    description=f"Scheduled payment to {payment.credit_card.name}",
                    idempotency_key=f"scheduled-payment:{payment.id}",
                )
            except BaseApplicationError as exc:
                payment.fail(exc.message)
                payment.save()
                cls.get_logger().warning(
                    "Scheduled payment failed",
                    extra={"payment_id": str(payment.id), "error_code": exc.error_code},
                )
                return payment

            payment.complete(amount, txn)
            payment.save()

        cls.get_logger().info(
            "Processed scheduled payment",
            extra={"payment_id": str(payment.id), "amount": amount},
        )
        return payment

    @classmethod
    def process_due_payments(cls, as_of: date | None = None) -> dict[str, int]:
        """
        Process every scheduled payment due on or before as_of.

        Returns:
            Counts of completed and failed payments
        """
        as_of = as_of or timezone.localdate()
        due_ids = list(
            ScheduledPayment.objects.filter(
                status=ScheduledPaymentStatus.SCHEDULED,
                scheduled_date__lte=as_of,
            ).values_list("id", flat=True)
        )
        results = {"completed": 0, "failed": 0}
        for payment_id in due_ids:
            try:
                payment = cls.process_scheduled_payment(payment_id)
            except BaseApplicationError:
                cls.get_logger().exception("Error processing scheduled payment", extra={"payment_id": str(payment_id)})
                results["failed"] += 1
                continue
            if payment.status == ScheduledPaymentStatus.COMPLETED:
                results["completed"] += 1
            else:
                results["failed"] += 1
        return results
