from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from telegram import Bot
from telegram.error import TelegramError

from .models import ItineraryOption, MatchedOffer

logger = logging.getLogger(__name__)

UNAVAILABLE = "Indisponível"


def format_date(value: str) -> str:
    """``2025-05-14`` → ``14/05/2025``."""
    year, month, day = value.split("-")
    return f"{day}/{month}/{year}"


def format_time(value: Optional[str]) -> str:
    """Keep ``<time> <AMPM>`` of a ``<date> <time> <AMPM>`` string.

    The date part is dropped as is, whatever its format.
    """
    if not value:
        return UNAVAILABLE
    return " ".join(value.split(" ")[1:3])


def format_price(price: Decimal, currency_symbol: str = "R$") -> str:
    return f"{currency_symbol} {price:.2f}"


def stops_label(option: ItineraryOption) -> str:
    if option.stop_count == 0:
        return "Direto"
    if option.stop_count == 1:
        label = option.stop_labels[0] if option.stop_labels else ""
        return f"1 parada ({label})" if label else "1 parada"
    return f"{option.stop_count} paradas"


def _option_block(title: str, option: ItineraryOption) -> str:
    return (
        f"*{title}:*\n"
        f"- *Companhia Aérea:* {option.carrier_name or UNAVAILABLE}\n"
        f"- *Horário de Partida:* {format_time(option.departure_timestamp)}\n"
        f"- *Horário de Chegada:* {format_time(option.arrival_timestamp)}\n"
        f"- *Duração:* {option.duration_label or UNAVAILABLE}\n"
        f"- *Tipo:* {stops_label(option)}\n\n"
    )


def build_message(offer: MatchedOffer, *, currency_symbol: str = "R$") -> str:
    """Render one offer as a Telegram Markdown message."""
    route, cand = offer.route, offer.candidate
    msg = (
        "✈️ *Oferta de Passagem Aérea Encontrada!*\n\n"
        f"- *Origem:* {route.origin_name} ({route.origin_code})\n"
        f"- *Destino:* {route.display_name} ({route.destination_code})\n"
        f"- *Data Ida:* {format_date(cand.outbound_date)}\n"
    )
    if cand.return_date:
        msg += f"- *Data Volta:* {format_date(cand.return_date)}\n"
    if cand.outbound_price is not None and cand.return_price is not None:
        msg += (
            f"- *Ida:* {format_price(cand.outbound_price, currency_symbol)}\n"
            f"- *Volta:* {format_price(cand.return_price, currency_symbol)}\n"
        )
    msg += (
        f"- *Total (ida/volta):* "
        f"{format_price(cand.round_trip_price, currency_symbol)}\n\n"
    )

    for i, option in enumerate(offer.outbound, start=1):
        msg += _option_block(f"Voo de IDA {i}", option)
    for i, option in enumerate(offer.inbound, start=1):
        msg += _option_block(f"Voo de VOLTA {i}", option)
    return msg


def build_batch_message(
    offers: Iterable[MatchedOffer], *, currency_symbol: str = "R$"
) -> str:
    """One message for the whole run, one paragraph per offer."""
    parts: List[str] = [
        build_message(offer, currency_symbol=currency_symbol).rstrip("\n")
        for offer in offers
    ]
    return "\n\n".join(parts)


class TelegramNotifier:
    """Deliver Markdown messages to a single Telegram chat."""

    def __init__(self, bot: Bot, chat_id: str | int) -> None:
        self.bot = bot
        self.chat_id = chat_id

    @classmethod
    def from_settings(cls, settings) -> "TelegramNotifier":
        return cls(Bot(token=settings.telegram_token), settings.chat_id)

    async def _send(self, text: str) -> None:
        async with self.bot:
            await self.bot.send_message(
                chat_id=self.chat_id,
                text=text,
                parse_mode="Markdown",
            )

    def send(self, text: str) -> bool:
        """Send *text*; failures are logged and reported as ``False``."""
        try:
            asyncio.run(self._send(text))
        except TelegramError as exc:
            logger.warning("Failed to send Telegram message: %s", exc)
            return False
        return True


__all__ = [
    "UNAVAILABLE",
    "format_date",
    "format_time",
    "format_price",
    "stops_label",
    "build_message",
    "build_batch_message",
    "TelegramNotifier",
]
