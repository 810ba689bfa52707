# glossary_bot/reply_formatter.py
from __future__ import annotations

import os
from datetime import datetime
from typing import List, Sequence

from dotenv import load_dotenv

from glossary_bot.base_utils import BaseUtils
from glossary_bot.bot_messages import DEFAULT_MESSAGES, BotMessages
from glossary_bot.models import GlossaryValue

load_dotenv()

# strftime pattern; %x / %X follow the process LC_TIME locale
DATE_FORMAT = os.getenv("GLOSSARY_DATE_FORMAT", "%x %X")


class ReplyFormatter(BaseUtils):
    """
    Renders store results into the fixed reply templates.
    Stateless apart from the template table and the date pattern.
    """

    def __init__(self, messages: BotMessages = DEFAULT_MESSAGES, date_format: str = DATE_FORMAT):
        self.messages = messages
        self.date_format = date_format

    def format_values(self, key: str, values: Sequence[str]) -> str:
        if len(values) == 1:
            return self.unsafe_string_format(self.messages.single_value, key=key, value=values[0])

        lines = "\n".join(f"{index}. {value}" for index, value in enumerate(values, start=1))
        return self.unsafe_string_format(
            self.messages.multiple_values,
            key=key,
            count=len(values),
            lines=lines,
        )

    def format_date(self, date_iso: str) -> str:
        if not date_iso:
            return self.messages.unknown_date

        try:
            parsed = datetime.fromisoformat(date_iso.replace("Z", "+00:00"))
        except ValueError:
            return date_iso

        # naive timestamps are rendered as-is, aware ones in local time
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone()
        return parsed.strftime(self.date_format)

    def format_details(self, key: str, item: GlossaryValue) -> str:
        return self.unsafe_string_format(
            self.messages.value_details,
            key=key,
            value=item.value,
            created_at=self.format_date(item.created_at),
            created_by=item.created_by,
        )

    def format_multi_add_summary(self, added: int, duplicates: int, errors: int) -> str:
        parts: List[str] = [self.unsafe_string_format(self.messages.multi_add_added, count=added)]
        if duplicates > 0:
            parts.append(self.unsafe_string_format(self.messages.multi_add_duplicates, count=duplicates))
        if errors > 0:
            parts.append(self.unsafe_string_format(self.messages.multi_add_errors, count=errors))
        return "\n".join(parts)

    def render(self, template: str, **kwargs) -> str:
        return self.unsafe_string_format(template, **kwargs)
