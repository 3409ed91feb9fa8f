"""Credit card billing-cycle calculator.

Given a card's closing day (and optionally its due day and preferred purchase
day) this module answers which billing period a date belongs to, when the
next closing and due dates fall, on which statement a purchase will appear
and which day of the month is best for buying.

Every public function takes the point in time explicitly and never raises.
Each calculation is an ordered chain of strategies registered in the
``*_STRATEGIES`` lists below: the first strategy is exact, later ones trade
precision for robustness.  A strategy that raises is logged and the next one
runs; the last strategy in a chain cannot fail.  ``resolve_billing_period``
and ``resolve_launch_date`` report which tier produced the answer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from anchored_days import (
    MAX_DAY,
    MIN_DAY,
    add_months,
    build_date,
    days_between,
    is_same_month,
    next_occurrence_after,
    next_occurrence_of_day,
    normalize_day,
    period_label,
    previous_occurrence_of_day,
    to_date,
)

logger = logging.getLogger(__name__)

DUE_DAY_OFFSET = 10
DEFAULT_CLOSING_DAY = 15
DEFAULT_PERIOD_DAYS = 30
DEFAULT_LAUNCH_OFFSET_DAYS = 45

EXACT = "exact"
FALLBACK = "fallback"
DEFAULT = "default"

# Legacy records were stored with Portuguese column names.
_RECORD_KEYS = {
    "closing_day": ("closing_day", "dia_fechamento"),
    "due_day": ("due_day", "dia_vencimento"),
    "preferred_purchase_day": ("preferred_purchase_day", "melhor_dia_compra"),
}


class InvalidCardConfiguration(ValueError):
    """Raised inside the calculator when a card cannot be used as configured."""

    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__(f"Invalid card configuration: {', '.join(self.errors)}")


# ---------------------------------------------------------------------------
# Data model


@dataclass(frozen=True)
class CardConfiguration:
    """Billing days of a card. Only ``closing_day`` is required."""

    closing_day: int
    due_day: Optional[int] = None
    preferred_purchase_day: Optional[int] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CardConfiguration":
        """Build a configuration from a stored card record.

        Records predating the optional fields simply lack them.
        """

        values = {}
        for attr, keys in _RECORD_KEYS.items():
            values[attr] = next(
                (record[k] for k in keys if record.get(k) is not None), None
            )
        return cls(**values)


@dataclass(frozen=True)
class BillingPeriod:
    start: date
    end: date
    reference_label: str
    days_remaining: int


@dataclass(frozen=True)
class BillingSummary:
    period: BillingPeriod
    next_closing: date
    next_due: date
    days_until_closing: int
    best_purchase_day: int


@dataclass(frozen=True)
class LaunchPreview:
    """When, and on which statement, a purchase will be billed."""

    launch_date: date
    launch_label: str
    period: BillingPeriod
    days_until_due: int
    is_deferred: bool


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Resolution:
    """A computed value tagged with the strategy tier that produced it."""

    value: Any
    precision: str


# ---------------------------------------------------------------------------
# Configuration helpers


def _is_day(value) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and MIN_DAY <= value <= MAX_DAY
    )


def _wrap_day(day: int) -> int:
    return day - MAX_DAY if day > MAX_DAY else day


def _coerce_config(config) -> CardConfiguration:
    if isinstance(config, CardConfiguration):
        return config
    if isinstance(config, Mapping):
        return CardConfiguration.from_record(config)
    raise InvalidCardConfiguration(["card configuration is missing"])


def _checked_config(config) -> CardConfiguration:
    config = _coerce_config(config)
    result = validate_configuration(config)
    if not result.valid:
        raise InvalidCardConfiguration(result.errors)
    return config


def _fallback_closing_day(config) -> int:
    try:
        closing = _coerce_config(config).closing_day
    except InvalidCardConfiguration:
        closing = None
    return normalize_day(closing) if closing else DEFAULT_CLOSING_DAY


def _fallback_due_day(config) -> int:
    try:
        due = _coerce_config(config).due_day
    except InvalidCardConfiguration:
        due = None
    return normalize_day(due or _fallback_closing_day(config) + DUE_DAY_OFFSET)


def _default_anchor(value) -> date:
    """The date a last-resort result is built around."""

    try:
        return to_date(value)
    except ValueError:
        return date.today()


def _days_after(value, days: int) -> date:
    """``days`` after the last-resort anchor, capped at ``date.max``."""

    anchor = _default_anchor(value)
    if anchor > date.max - timedelta(days=days):
        return date.max
    return anchor + timedelta(days=days)


def validate_configuration(config) -> ValidationResult:
    """Check a card configuration without modifying it."""

    try:
        config = _coerce_config(config)
    except InvalidCardConfiguration as exc:
        return ValidationResult(valid=False, errors=exc.errors)

    errors: List[str] = []
    if not _is_day(config.closing_day):
        errors.append(f"closing day must be between {MIN_DAY} and {MAX_DAY}")
    if config.due_day is not None:
        if not _is_day(config.due_day):
            errors.append(f"due day must be between {MIN_DAY} and {MAX_DAY}")
        if config.due_day == config.closing_day:
            errors.append("due day must differ from closing day")
    if config.preferred_purchase_day is not None and not _is_day(
        config.preferred_purchase_day
    ):
        errors.append(
            f"preferred purchase day must be between {MIN_DAY} and {MAX_DAY}"
        )
    return ValidationResult(valid=not errors, errors=errors)


def resolve_due_day(config: CardConfiguration) -> int:
    """Configured due day, or ten days after closing wrapped past day 31."""

    if config.due_day is not None:
        return config.due_day
    return _wrap_day(config.closing_day + DUE_DAY_OFFSET)


def get_best_purchase_day(config) -> int:
    """Day of month giving the longest float before a purchase is billed.

    The day right after closing starts a fresh period, so that is the
    default when no preferred day is configured.
    """

    try:
        preferred = _coerce_config(config).preferred_purchase_day
    except InvalidCardConfiguration:
        preferred = None
    if _is_day(preferred):
        return preferred
    best = _fallback_closing_day(config) + 1
    return MIN_DAY if best > MAX_DAY else best


def resolve_legacy_defaults(config) -> Dict[str, int]:
    """Fill in the optional fields for records that predate them."""

    try:
        config = _coerce_config(config)
        due_day = config.due_day
    except InvalidCardConfiguration:
        due_day = None
    if not _is_day(due_day):
        due_day = _wrap_day(_fallback_closing_day(config) + DUE_DAY_OFFSET)
    return {
        "due_day": due_day,
        "preferred_purchase_day": get_best_purchase_day(config),
    }


def has_extended_billing_fields(config) -> bool:
    try:
        config = _coerce_config(config)
    except InvalidCardConfiguration:
        return False
    return config.due_day is not None or config.preferred_purchase_day is not None


def has_complete_billing_config(config) -> bool:
    try:
        config = _coerce_config(config)
    except InvalidCardConfiguration:
        return False
    return _is_day(config.closing_day) and _is_day(config.due_day)


# ---------------------------------------------------------------------------
# Strategy chains


def _make_period(start: date, end: date, reference: date) -> BillingPeriod:
    return BillingPeriod(
        start=start,
        end=end,
        reference_label=period_label(end),
        days_remaining=max(0, days_between(reference, end)),
    )


def _anchored_period(config, reference) -> BillingPeriod:
    config = _checked_config(config)
    reference = to_date(reference)
    # A reference on the closing day belongs to the period ending that day.
    previous_closing = previous_occurrence_of_day(
        reference - timedelta(days=1), config.closing_day
    )
    start = previous_closing + timedelta(days=1)
    end = next_occurrence_after(previous_closing, config.closing_day)
    return _make_period(start, end, reference)


def _month_boundary_period(config, reference) -> BillingPeriod:
    reference = to_date(reference)
    closing_day = _fallback_closing_day(config)
    this_closing = build_date(reference.year, reference.month, closing_day)
    if reference > this_closing:
        start = this_closing + timedelta(days=1)
        end = build_date(reference.year, reference.month + 1, closing_day)
    else:
        previous = build_date(reference.year, reference.month - 1, closing_day)
        start = previous + timedelta(days=1)
        end = this_closing
    return _make_period(start, end, reference)


def _fixed_window_period(config, reference) -> BillingPeriod:
    start = _default_anchor(reference)
    end = _days_after(start, DEFAULT_PERIOD_DAYS)
    return BillingPeriod(
        start=start,
        end=end,
        reference_label=period_label(start),
        days_remaining=days_between(start, end),
    )


def _anchored_launch(purchase, config) -> date:
    config = _checked_config(config)
    purchase = to_date(purchase)
    closing = next_occurrence_of_day(purchase, config.closing_day)
    # The statement closing on ``closing`` is payable the following month.
    return build_date(closing.year, closing.month + 1, resolve_due_day(config))


def _two_month_launch(purchase, config) -> date:
    shifted = add_months(purchase, 2)
    return build_date(shifted.year, shifted.month, _fallback_due_day(config))


def _offset_launch(purchase, config) -> date:
    return _days_after(purchase, DEFAULT_LAUNCH_OFFSET_DAYS)


def _configured_next_closing(config, reference) -> date:
    return next_occurrence_of_day(reference, _coerce_config(config).closing_day)


def _clamped_next_closing(config, reference) -> date:
    return next_occurrence_of_day(reference, _fallback_closing_day(config))


def _configured_next_due(config, reference) -> date:
    return next_occurrence_of_day(reference, resolve_due_day(_coerce_config(config)))


def _clamped_next_due(config, reference) -> date:
    return next_occurrence_of_day(reference, _fallback_due_day(config))


def _month_ahead(config, reference) -> date:
    return _days_after(reference, DEFAULT_PERIOD_DAYS)


Strategy = Callable[..., Any]

PERIOD_STRATEGIES: List[Tuple[str, Strategy]] = [
    (EXACT, _anchored_period),
    (FALLBACK, _month_boundary_period),
    (DEFAULT, _fixed_window_period),
]

LAUNCH_STRATEGIES: List[Tuple[str, Strategy]] = [
    (EXACT, _anchored_launch),
    (FALLBACK, _two_month_launch),
    (DEFAULT, _offset_launch),
]

NEXT_CLOSING_STRATEGIES: List[Tuple[str, Strategy]] = [
    (EXACT, _configured_next_closing),
    (FALLBACK, _clamped_next_closing),
    (DEFAULT, _month_ahead),
]

NEXT_DUE_STRATEGIES: List[Tuple[str, Strategy]] = [
    (EXACT, _configured_next_due),
    (FALLBACK, _clamped_next_due),
    (DEFAULT, _month_ahead),
]


def _resolve(name: str, strategies: Sequence[Tuple[str, Strategy]], *args) -> Resolution:
    """Run ``strategies`` in order and return the first result obtained."""

    *tiers, (last_precision, last_strategy) = strategies
    for tier, (precision, strategy) in enumerate(tiers):
        try:
            return Resolution(strategy(*args), precision)
        except Exception as exc:
            log = logger.warning if tier == 0 else logger.error
            log("%s: %s calculation failed, degrading: %s", name, precision, exc)
    return Resolution(last_strategy(*args), last_precision)


# ---------------------------------------------------------------------------
# Public API


def resolve_billing_period(config, reference_date: date | datetime | str) -> Resolution:
    return _resolve("billing period", PERIOD_STRATEGIES, config, reference_date)


def resolve_launch_date(purchase_date: date | datetime | str, config) -> Resolution:
    return _resolve("launch date", LAUNCH_STRATEGIES, purchase_date, config)


def get_billing_period(config, reference_date: date | datetime | str) -> BillingPeriod:
    """Return the billing period containing ``reference_date``.

    The period starts the day after the previous closing and ends on the next
    closing; ``days_remaining`` counts down to that closing.
    """

    return resolve_billing_period(config, reference_date).value


def calculate_launch_date(purchase_date: date | datetime | str, config) -> date:
    """Return the date on which a purchase is billed.

    The purchase belongs to the first closing on or after it and that
    statement falls due the month after closing, on the card's due day.
    """

    return resolve_launch_date(purchase_date, config).value


def is_in_current_period(d: date | datetime | str, config) -> bool:
    try:
        d = to_date(d)
    except ValueError:
        return False
    period = get_billing_period(config, d)
    return period.start <= d <= period.end


def get_next_closing_date(config, reference_date: date | datetime | str) -> date:
    return _resolve("next closing", NEXT_CLOSING_STRATEGIES, config, reference_date).value


def get_next_due_date(config, reference_date: date | datetime | str) -> date:
    return _resolve("next due", NEXT_DUE_STRATEGIES, config, reference_date).value


def get_comprehensive_summary(config, reference_date: date | datetime | str) -> BillingSummary:
    next_closing = get_next_closing_date(config, reference_date)
    return BillingSummary(
        period=get_billing_period(config, reference_date),
        next_closing=next_closing,
        next_due=get_next_due_date(config, reference_date),
        days_until_closing=days_between(_default_anchor(reference_date), next_closing),
        best_purchase_day=get_best_purchase_day(config),
    )


def get_launch_preview(purchase_date: date | datetime | str, config) -> LaunchPreview:
    launch = calculate_launch_date(purchase_date, config)
    purchase = _default_anchor(purchase_date)
    return LaunchPreview(
        launch_date=launch,
        launch_label=period_label(launch),
        period=get_billing_period(config, purchase_date),
        days_until_due=days_between(purchase, launch),
        is_deferred=not is_same_month(purchase, launch),
    )
