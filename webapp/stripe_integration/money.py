"""
Money helpers

Amounts are stored and sent to Stripe as integer minor units. The display
strings produced here are for the admin UI only and follow en-US currency
formatting ("$49.00", "¥4,900").
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

SUPPORTED_CURRENCIES = {
    'usd': {'symbol': '$', 'name': 'US Dollar', 'decimals': 2},
    'eur': {'symbol': '€', 'name': 'Euro', 'decimals': 2},
    'gbp': {'symbol': '£', 'name': 'British Pound', 'decimals': 2},
    'cad': {'symbol': 'CA$', 'name': 'Canadian Dollar', 'decimals': 2},
    'aud': {'symbol': 'A$', 'name': 'Australian Dollar', 'decimals': 2},
    'jpy': {'symbol': '¥', 'name': 'Japanese Yen', 'decimals': 0},
}

DEFAULT_CURRENCY = 'usd'

_CURRENCY_RE = re.compile(r'^[a-z]{3}$')


def normalize_currency(currency):
    """Lowercase a 3-letter ISO currency code, raising ValueError if malformed"""
    code = (currency or '').strip().lower()
    if not _CURRENCY_RE.match(code):
        raise ValueError(f"Currency must be a 3-letter code (e.g. usd), got {currency!r}")
    return code


def currency_info(currency):
    """Symbol/decimals for a currency; unknown codes display as 'CHF 1.00'"""
    code = normalize_currency(currency)
    return SUPPORTED_CURRENCIES.get(
        code,
        {'symbol': f'{code.upper()} ', 'name': code.upper(), 'decimals': 2}
    )


def cents_to_price(cents, currency=DEFAULT_CURRENCY):
    """
    Format an integer minor-unit amount for display.

    >>> cents_to_price(4900, 'usd')
    '$49.00'
    """
    if isinstance(cents, bool) or not isinstance(cents, int):
        raise ValueError(f"Amount must be an integer number of minor units, got {cents!r}")

    info = currency_info(currency)
    decimals = info['decimals']
    sign = '-' if cents < 0 else ''
    major, minor = divmod(abs(cents), 10 ** decimals)

    formatted = f"{sign}{info['symbol']}{major:,}"
    if decimals:
        formatted += f".{minor:0{decimals}d}"
    return formatted


def _amount_pattern(decimals):
    fraction = rf'(\.\d{{0,{decimals}}})?' if decimals else r'\.?'
    return re.compile(rf'^(\d{{1,3}}(,\d{{3}})+|\d+){fraction}$')


def price_to_cents(price, currency=DEFAULT_CURRENCY):
    """
    Parse a display price back into integer minor units.

    Inverse of cents_to_price for every supported currency; also accepts
    bare numbers such as '49' or '49.5'. Only the currency's own symbol or
    upper-case code may prefix the amount, commas must be thousands
    separators, and the fraction may not exceed the currency's decimals.

    >>> price_to_cents('$49.00', 'usd')
    4900
    """
    code = normalize_currency(currency)
    info = currency_info(code)
    decimals = info['decimals']

    text = ''.join(str(price).split())
    sign = ''
    if text.startswith('-'):
        sign, text = '-', text[1:]
    for prefix in (info['symbol'].strip(), code.upper()):
        if text.upper().startswith(prefix.upper()):
            text = text[len(prefix):]
            break

    if not _amount_pattern(decimals).match(text):
        raise ValueError(f"Not a {code.upper()} price: {price!r}")

    try:
        amount = Decimal(sign + text.replace(',', '').rstrip('.'))
    except InvalidOperation:
        raise ValueError(f"Not a {code.upper()} price: {price!r}")

    minor = (amount * (10 ** decimals)).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    return int(minor)
