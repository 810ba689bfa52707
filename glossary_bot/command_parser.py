# glossary_bot/command_parser.py
"""
Free-text command grammar.

    message   := command | search
    command   := "!" NAME (END | WHITESPACE payload)
    NAME      := "add" | "multi-add" | "remove" | "details" | "help"
    pair      := key ":" value            (split on the FIRST colon)

Names are tried in priority order (add, multi-add, remove, details, help), so
"!addendum" is not "add" and falls back to a plain search. Everything here is
a pure function of its input.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from glossary_bot.bot_messages import COMMAND_ORDER, COMMAND_PREFIX
from glossary_bot.models import KeyValuePair
from glossary_bot.normalizer import is_valid_key, is_valid_value


@dataclass(frozen=True)
class ParsedCommand:
    # None means "not a command": payload is the search key
    command: Optional[str]
    payload: str


def is_command(text: Optional[str], prefix: str = COMMAND_PREFIX) -> bool:
    trimmed = (text or "").strip()
    return trimmed.startswith(prefix)


def match_command(text: Optional[str], command: str, prefix: str = COMMAND_PREFIX) -> bool:
    if not is_command(text, prefix):
        return False

    trimmed = (text or "").strip()
    token = f"{prefix}{command}"
    if not trimmed.startswith(token):
        return False

    next_char = trimmed[len(token):len(token) + 1]
    return next_char == "" or next_char.isspace()


def get_command_type(
    text: Optional[str],
    commands=COMMAND_ORDER,
    prefix: str = COMMAND_PREFIX,
) -> Optional[str]:
    for command in commands:
        if match_command(text, command, prefix):
            return command
    return None


def extract_command_payload(text: Optional[str], command: str, prefix: str = COMMAND_PREFIX) -> str:
    trimmed = (text or "").strip()
    token = f"{prefix}{command}"

    if not trimmed.lower().startswith(token):
        return ""

    return trimmed[len(token):].strip()


def parse_command(
    text: Optional[str],
    commands=COMMAND_ORDER,
    prefix: str = COMMAND_PREFIX,
) -> ParsedCommand:
    trimmed = (text or "").strip()
    command = get_command_type(trimmed, commands, prefix)
    if command is None:
        return ParsedCommand(command=None, payload=trimmed)
    return ParsedCommand(command=command, payload=extract_command_payload(trimmed, command, prefix))


def parse_key_value(text: Optional[str]) -> Optional[KeyValuePair]:
    if not text:
        return None

    colon_index = text.find(":")
    if colon_index <= 0:
        return None

    key = text[:colon_index].strip()
    value = text[colon_index + 1:].strip()

    if not is_valid_key(key) or not is_valid_value(value):
        return None

    return KeyValuePair(key=key, value=value)


def parse_multi_add(text: Optional[str]) -> List[KeyValuePair]:
    lines = [line.strip() for line in (text or "").split("\n")]
    pairs: List[KeyValuePair] = []

    for line in lines:
        if not line:
            continue
        # one optional trailing ";"
        clean_line = line[:-1].strip() if line.endswith(";") else line
        pair = parse_key_value(clean_line)
        if pair:
            pairs.append(pair)

    return pairs
