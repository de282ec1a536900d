"""
casinoscrape.extraction.vocabularies

Canonical vocabularies used for keyword membership checks.
"""

from __future__ import annotations

PAYMENT_METHODS = (
    "Visa",
    "Mastercard",
    "PayPal",
    "Skrill",
    "Neteller",
    "Bitcoin",
    "Ethereum",
    "Litecoin",
    "Bank Transfer",
    "EcoPayz",
    "Paysafecard",
    "AstroPay",
    "MuchBetter",
    "Apple Pay",
    "Google Pay",
    "Trustly",
)

LICENSES = (
    "Malta Gaming Authority",
    "MGA",
    "UK Gambling Commission",
    "UKGC",
    "Curacao",
    "Gibraltar",
    "Kahnawake",
    "Alderney",
    "Estonia",
    "Isle of Man",
    "Costa Rica",
    "Antigua and Barbuda",
)

LANGUAGES = (
    "English",
    "Russian",
    "German",
    "Spanish",
    "French",
    "Italian",
    "Portuguese",
    "Chinese",
    "Japanese",
    "Korean",
    "Arabic",
    "Turkish",
    "Polish",
    "Norwegian",
    "Swedish",
)

CURRENCIES = ("USD", "EUR", "GBP", "CAD", "AUD", "SEK", "NOK", "BTC", "ETH", "LTC", "RUB", "JPY", "KRW")

CURRENCY_SYMBOLS = {"$": "USD", "€": "EUR", "£": "GBP"}

CASINO_FEATURES = (
    "Live Chat",
    "Mobile Compatible",
    "VIP Program",
    "Loyalty Program",
    "Tournaments",
    "Live Dealer",
    "Slots",
    "Jackpots",
    "24/7 Support",
    "Fast Withdrawals",
    "No Verification",
    "Instant Play",
)

LIVE_GAME_FEATURES = (
    "live dealer",
    "live stream",
    "real time",
    "multiplier",
    "bonus rounds",
    "wheel spin",
    "cash hunt",
    "coin flip",
    "pachinko",
    "crazy time bonus",
    "statistics",
    "big wins",
)

BONUS_PHRASES = (
    "welcome bonus",
    "deposit bonus",
    "free spins",
    "cashback",
    "reload bonus",
    "no deposit",
)

# Keyword scan defaults for listing pages
LISTING_KEYWORDS = ("casino", "review", "rating", "bonus", "deposit", "withdrawal", "license", "payment")

# Dedicated selectors per categorical field
FIELD_SELECTORS = {
    "bonuses": (".bonus", ".welcome-bonus", ".promo", ".offer", "[data-bonus]", ".bonus-info", ".promotion"),
    "payment_methods": (".payment-methods", ".payments", ".banking", "[data-payment]", ".payment-options"),
    "licenses": (".license", ".licensing", ".regulation", "[data-license]", ".regulatory-info"),
    "languages": (".languages", ".language-support", "[data-languages]"),
    "currencies": (".currencies", ".currency-support", "[data-currencies]"),
    "features": (".features", ".casino-features", "[data-features]"),
}

FIELD_VOCABULARIES = {
    "payment_methods": PAYMENT_METHODS,
    "licenses": LICENSES,
    "languages": LANGUAGES,
    "currencies": CURRENCIES,
    "features": CASINO_FEATURES,
}
