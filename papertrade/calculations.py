"""Cost-basis and P&L arithmetic.

Pure functions over Decimal values. Nothing here touches storage; the
portfolio managers call these to compute the next ledger state and then
persist it.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from papertrade.errors import InsufficientFundsError, InsufficientQuantityError, InvalidAmountError
from papertrade.types import (
    AssetRef,
    Holding,
    PortfolioSummary,
    SellMethod,
    Transaction,
    TransactionType,
    ValuedHolding,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def is_positive(value: Decimal) -> bool:
    """True for a finite value above zero. NaN and infinities are not positive."""
    return Decimal(value).is_finite() and value > 0


def calculate_quantity(amount: Decimal, price: Decimal) -> Decimal:
    """Quantity bought by spending `amount` at `price` (0 for a non-positive price)."""
    if price <= 0:
        return ZERO
    return amount / price


def calculate_amount(quantity: Decimal, price: Decimal) -> Decimal:
    return quantity * price


def calculate_average_entry_price(
    current_quantity: Decimal,
    current_avg_price: Decimal,
    new_quantity: Decimal,
    new_price: Decimal,
) -> Decimal:
    """Weighted mean of the existing position and a new fill.

    Returns 0 when the combined quantity is not positive.
    """
    total_quantity = current_quantity + new_quantity
    if total_quantity <= 0:
        return ZERO
    total_value = current_quantity * current_avg_price + new_quantity * new_price
    return total_value / total_quantity


def calculate_profit_loss(quantity: Decimal, entry_price: Decimal, current_price: Decimal) -> Decimal:
    return quantity * current_price - quantity * entry_price


def calculate_profit_loss_percent(quantity: Decimal, entry_price: Decimal, current_price: Decimal) -> Decimal:
    invested = quantity * entry_price
    if invested == 0:
        return ZERO
    return calculate_profit_loss(quantity, entry_price, current_price) / invested * HUNDRED


def calculate_current_value(quantity: Decimal, current_price: Decimal) -> Decimal:
    return quantity * current_price


def calculate_exit_quantity_by_percentage(total_quantity: Decimal, percentage: Decimal) -> Decimal:
    return total_quantity * percentage / HUNDRED


def calculate_exit_quantity_by_amount(exit_amount: Decimal, current_price: Decimal) -> Decimal:
    if current_price <= 0:
        return ZERO
    return exit_amount / current_price


def calculate_realized_profit_loss(quantity: Decimal, entry_price: Decimal, exit_price: Decimal) -> Decimal:
    """P&L locked in by selling `quantity` bought at `entry_price`."""
    return quantity * exit_price - quantity * entry_price


def resolve_exit(
    method: SellMethod,
    value: Decimal,
    total_quantity: Decimal,
    exit_price: Decimal,
    dust_quantity: Decimal = ZERO,
) -> tuple[Decimal, Decimal]:
    """Translate a sell request into (quantity, amount).

    Args:
        method: How `value` is expressed (percentage, amount or quantity)
        value: Percentage of the holding, cash amount, or asset quantity
        total_quantity: Quantity currently held
        exit_price: Sell price
        dust_quantity: Overshoot tolerated before the quantity is clamped
            to the full holding

    Returns:
        Tuple of (quantity to sell, cash amount received)
    """
    if method == SellMethod.PERCENTAGE:
        quantity = calculate_exit_quantity_by_percentage(total_quantity, value)
        amount = calculate_amount(quantity, exit_price)
    elif method == SellMethod.AMOUNT:
        quantity = calculate_exit_quantity_by_amount(value, exit_price)
        amount = value
    else:
        quantity = value
        amount = calculate_amount(quantity, exit_price)

    # Division leaves a tail on amount-based exits of a whole position.
    if total_quantity < quantity <= total_quantity + dust_quantity:
        quantity = total_quantity
        amount = calculate_amount(quantity, exit_price)

    return quantity, amount


def validate_buy_transaction(entry_price: Decimal, investment_amount: Decimal, wallet_balance: Decimal) -> None:
    """Raise if a buy cannot be executed.

    Raises:
        InvalidAmountError: If price or amount is not positive
        InsufficientFundsError: If the amount exceeds the wallet balance
    """
    if not is_positive(entry_price):
        raise InvalidAmountError("Entry price must be greater than 0")
    if not is_positive(investment_amount):
        raise InvalidAmountError("Investment amount must be greater than 0")
    if investment_amount > wallet_balance:
        raise InsufficientFundsError(required=investment_amount, available=wallet_balance)


def validate_sell_transaction(
    exit_price: Decimal,
    exit_quantity: Decimal,
    available_quantity: Decimal,
    asset_id: str = "",
) -> None:
    """Raise if a sell cannot be executed.

    Raises:
        InvalidAmountError: If price or quantity is not positive
        InsufficientQuantityError: If more is sold than is held
    """
    if not is_positive(exit_price):
        raise InvalidAmountError("Exit price must be greater than 0")
    if not is_positive(exit_quantity):
        raise InvalidAmountError("Exit quantity must be greater than 0")
    if exit_quantity > available_quantity:
        raise InsufficientQuantityError(asset_id=asset_id, requested=exit_quantity, available=available_quantity)


def apply_buy(
    holding: Optional[Holding],
    asset: AssetRef,
    quantity: Decimal,
    price: Decimal,
    amount: Decimal,
    now: datetime,
) -> Holding:
    """Return the holding after buying `quantity` for `amount`.

    A new holding starts at the fill price. An existing one averages in:
    invested capital and quantity are summed and the entry price becomes
    their ratio.
    """
    if holding is None:
        return Holding(
            asset_id=asset.asset_id,
            asset_symbol=asset.symbol,
            asset_name=asset.name,
            category=asset.category,
            total_quantity=quantity,
            average_entry_price=price,
            total_invested=amount,
            first_purchase_date=now,
            last_updated=now,
        )

    new_quantity = holding.total_quantity + quantity
    new_invested = holding.total_invested + amount
    return Holding(
        id=holding.id,
        asset_id=holding.asset_id,
        asset_symbol=holding.asset_symbol,
        asset_name=holding.asset_name,
        category=holding.category,
        total_quantity=new_quantity,
        average_entry_price=new_invested / new_quantity,
        total_invested=new_invested,
        first_purchase_date=holding.first_purchase_date,
        last_updated=now,
    )


def apply_sell(
    holding: Holding,
    quantity: Decimal,
    now: datetime,
    dust_quantity: Decimal = ZERO,
) -> tuple[Optional[Holding], Decimal]:
    """Return (holding after the sell, invested capital released).

    The average entry price is unchanged; invested capital shrinks by the
    sold proportion. The holding is closed (None) once the remainder is not
    above `dust_quantity`.
    """
    proportion_sold = quantity / holding.total_quantity
    invested_sold = holding.total_invested * proportion_sold
    new_quantity = holding.total_quantity - quantity

    if new_quantity <= dust_quantity:
        return None, holding.total_invested

    return (
        Holding(
            id=holding.id,
            asset_id=holding.asset_id,
            asset_symbol=holding.asset_symbol,
            asset_name=holding.asset_name,
            category=holding.category,
            total_quantity=new_quantity,
            average_entry_price=holding.average_entry_price,
            total_invested=holding.total_invested - invested_sold,
            first_purchase_date=holding.first_purchase_date,
            last_updated=now,
        ),
        invested_sold,
    )


def value_holding(holding: Holding, current_price: Decimal) -> ValuedHolding:
    """Mark a holding to `current_price`."""
    current_value = calculate_current_value(holding.total_quantity, current_price)
    profit_loss = current_value - holding.total_invested
    if holding.total_invested > 0:
        profit_loss_percent = profit_loss / holding.total_invested * HUNDRED
    else:
        profit_loss_percent = ZERO

    return ValuedHolding(
        holding=holding,
        current_price=current_price,
        current_value=current_value,
        profit_loss=profit_loss,
        profit_loss_percent=profit_loss_percent,
    )


def calculate_portfolio_summary(holdings: Sequence[ValuedHolding]) -> PortfolioSummary:
    total_invested = sum((h.holding.total_invested for h in holdings), ZERO)
    current_value = sum((h.current_value for h in holdings), ZERO)
    profit_loss = current_value - total_invested
    profit_loss_percent = profit_loss / total_invested * HUNDRED if total_invested > 0 else ZERO

    return PortfolioSummary(
        total_invested=total_invested,
        current_value=current_value,
        profit_loss=profit_loss,
        profit_loss_percent=profit_loss_percent,
        total_holdings=len(holdings),
    )


def calculate_total_realized_pnl(transactions: Iterable[Transaction], dust_quantity: Decimal = ZERO) -> Decimal:
    """Replay a trade history and sum the P&L realized by its sells.

    Transactions are processed oldest first. Each asset keeps a running
    quantity and weighted-average entry price; a sell realizes
    (exit - average entry) * quantity. Sells of assets with no prior buy
    contribute nothing. A position whose remainder is not above
    `dust_quantity` is closed, matching `apply_sell`.
    """
    total_pnl = ZERO
    positions: dict[str, tuple[Decimal, Decimal]] = {}  # asset_id -> (quantity, avg_price)

    ordered = sorted(transactions, key=lambda tx: (tx.timestamp, tx.id if tx.id is not None else 0))

    for tx in ordered:
        if tx.type == TransactionType.BUY:
            quantity, avg_price = positions.get(tx.asset_id, (ZERO, ZERO))
            new_avg = calculate_average_entry_price(quantity, avg_price, tx.quantity, tx.price)
            positions[tx.asset_id] = (quantity + tx.quantity, new_avg)
        elif tx.type == TransactionType.SELL:
            existing = positions.get(tx.asset_id)
            if existing is None:
                continue
            quantity, avg_price = existing
            total_pnl += calculate_realized_profit_loss(tx.quantity, avg_price, tx.price)

            remaining = quantity - tx.quantity
            if remaining > dust_quantity:
                positions[tx.asset_id] = (remaining, avg_price)
            else:
                del positions[tx.asset_id]

    return total_pnl
