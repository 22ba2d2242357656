# zonecart/domain/errors.py
"""
Wyjatki domenowe. Dziedzicza po wbudowanych (ValueError, RuntimeError, ...)
tak jak reszta serwisow, routery mapuja je na kody HTTP.
"""


class ValidationError(ValueError):
    """Brak wymaganego adresu / wspolrzednych, zle dane wejsciowe."""


class NotFoundError(LookupError):
    """Strefa / sklep / koszyk / user nie istnieje."""


class GeocodeFailure(RuntimeError):
    """Geocoder nie zwrocil wyniku albo nie odpowiedzial w czasie. Mozna ponowic."""

    def __init__(self, message: str = "Nie udalo sie ustalic adresu"):
        super().__init__(message)


class ConcurrencyConflict(RuntimeError):
    """Lock zajety albo nieaktualna wersja rekordu."""


class CheckoutConflict(RuntimeError):
    """
    Walidacja przy checkoucie usunela pozycje z koszyka.
    Zamowienie NIE zostalo utworzone, klient musi ponowic checkout.
    """

    def __init__(self, message: str, removed_items: list[dict] | None = None, reason: str = "zone"):
        super().__init__(message)
        self.removed_items = removed_items or []
        self.reason = reason
