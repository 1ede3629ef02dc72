def format_currency(amount: float, symbol: str = "CHF ") -> str:
    """Format a float as currency string, e.g. 'CHF 1,234.56'."""
    if amount < 0:
        return f"-{symbol}{abs(amount):,.2f}"
    return f"{symbol}{amount:,.2f}"


def format_signed(amount: float, symbol: str = "CHF ") -> str:
    """Format with +/- sign."""
    sign = "+" if amount >= 0 else "-"
    return f"{sign}{symbol}{abs(amount):,.2f}"
