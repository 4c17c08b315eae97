"""Amount-in-words conversion using the Indian numbering system."""

ONES = ["", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine"]
TEENS = [
    "ten", "eleven", "twelve", "thirteen", "fourteen",
    "fifteen", "sixteen", "seventeen", "eighteen", "nineteen",
]
TENS = ["", "", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety"]


def _below_thousand(n: int) -> list:
    words = []
    if n >= 100:
        words += [ONES[n // 100], "hundred"]
        n %= 100
    if n >= 20:
        words.append(TENS[n // 10])
        n %= 10
    elif n >= 10:
        words.append(TEENS[n - 10])
        return words
    if n > 0:
        words.append(ONES[n])
    return words


def _words(n: int) -> list:
    # Indian grouping: last three digits, then pairs for thousand and lakh,
    # everything above that counts crores
    crore, n = divmod(n, 10_000_000)
    lakh, n = divmod(n, 100_000)
    thousand, rest = divmod(n, 1000)

    words = []
    if crore:
        words += _words(crore) + ["crore"]
    if lakh:
        words += _below_thousand(lakh) + ["lakh"]
    if thousand:
        words += _below_thousand(thousand) + ["thousand"]
    if rest:
        words += _below_thousand(rest)
    return words


def amount_in_words(amount: int) -> str:
    """
    Spell out a whole rupee amount, e.g. 123456 -> "one lakh twenty three
    thousand four hundred fifty six".

    Args:
        amount: Whole number of rupees

    Returns:
        Lowercase words separated by single spaces; "zero" for 0
    """
    if amount == 0:
        return "zero"
    if amount < 0:
        return "minus " + amount_in_words(-amount)
    return " ".join(_words(amount))


def invoice_amount_line(amount: int) -> str:
    """Legal "amount in words" line printed on the invoice."""
    return f"{amount_in_words(amount).upper()} RUPEES ONLY."
