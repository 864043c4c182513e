from __future__ import annotations

import re
import unicodedata

DEMO_FIRST_NAMES: tuple[str, ...] = (
    "Agustina",
    "Bruno",
    "Camila",
    "Dario",
    "Florencia",
    "Gonzalo",
    "Julieta",
    "Lautaro",
    "Martina",
    "Nicolas",
    "Paula",
    "Santiago",
    "Valentina",
    "Tomas",
    "Lucia",
    "Matias",
)

DEMO_LAST_NAMES: tuple[str, ...] = (
    "Acosta",
    "Benitez",
    "Castro",
    "Dominguez",
    "Figueroa",
    "Gimenez",
    "Herrera",
    "Ibarra",
    "Ledesma",
    "Medina",
    "Ojeda",
    "Quiroga",
    "Sosa",
    "Villalba",
)

DEMO_EMAIL_DOMAIN = "estudio.local"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def _email_token(value: str) -> str:
    ascii_value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return _NON_ALNUM.sub("", ascii_value.lower())


def demo_email(first_name: str, last_name: str) -> str:
    return f"{_email_token(first_name)}.{_email_token(last_name)}@{DEMO_EMAIL_DOMAIN}"


def generate_demo_lawyers(total: int, offset: int = 0) -> list[str]:
    """Return ``total`` distinct demo lawyer emails."""
    if total < 0:
        raise ValueError("total must be >= 0")
    if total + offset > len(DEMO_FIRST_NAMES) * len(DEMO_LAST_NAMES):
        raise ValueError("Not enough demo name combinations")

    generated: list[str] = []
    first_len = len(DEMO_FIRST_NAMES)
    last_len = len(DEMO_LAST_NAMES)

    for idx in range(offset, offset + total):
        first_name = DEMO_FIRST_NAMES[idx % first_len]
        last_name = DEMO_LAST_NAMES[(idx + idx // first_len) % last_len]
        generated.append(demo_email(first_name, last_name))
    return generated
