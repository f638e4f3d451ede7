"""Controlled form values.

Forms are immutable records; every input event goes through ``apply_change``
which returns a new record instead of mutating the old one.
"""
import math
from dataclasses import dataclass, fields, replace

DEFAULT_CURRENCY = 'INR'


@dataclass(frozen=True)
class CredentialsForm:
    email: str = ''
    password: str = ''


@dataclass(frozen=True)
class ExpenseForm:
    amount: str = ''
    currency: str = DEFAULT_CURRENCY
    category: str = ''
    description: str = ''

    def cleared(self) -> 'ExpenseForm':
        # currency is left as the user last set it
        return replace(self, amount='', category='', description='')


def field_names(form) -> tuple:
    return tuple(f.name for f in fields(form))


def apply_change(form, field: str, value):
    if field not in field_names(form):
        raise ValueError(f'{type(form).__name__} has no field {field!r}')
    return replace(form, **{field: '' if value is None else str(value)})


def apply_changes(form, changes):
    """Apply every known field present in ``changes`` (e.g. ``request.form``)."""
    for name in field_names(form):
        if name in changes:
            form = apply_change(form, name, changes[name])
    return form


def parse_amount(raw) -> float | None:
    """Return the amount as a float if it is a strictly positive number, else None."""
    try:
        amount = float(str(raw).strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(amount) or amount <= 0:
        return None
    return amount


def blank_to_none(value: str) -> str | None:
    value = (value or '').strip()
    return value or None
