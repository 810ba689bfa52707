# glossary_bot/bot_messages.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


COMMAND_PREFIX = "!"
ROOM_TYPE_DIRECT = "d"

CMD_ADD = "add"
CMD_MULTI_ADD = "multi-add"
CMD_REMOVE = "remove"
CMD_DETAILS = "details"
CMD_HELP = "help"

# match priority: first hit wins
COMMAND_ORDER: Tuple[str, ...] = (CMD_ADD, CMD_MULTI_ADD, CMD_REMOVE, CMD_DETAILS, CMD_HELP)


# -----------------------
# Reply templates ({placeholders} are filled by unsafe_string_format)
# -----------------------

INVALID_ADD_FORMAT = "❌ Invalid command format. Use: `!add <key>:<value>`"

INVALID_MULTI_ADD_FORMAT = (
    "❌ Invalid command format. Use:\n"
    "`!multi-add\n<key1>:<value1>;\n<key2>:<value2>;`"
)

INVALID_REMOVE_FORMAT = (
    "❌ Invalid command format. Use:\n"
    "`!remove <key>` - remove the whole key\n"
    "`!remove <key>:<value>` - remove a single value"
)

INVALID_DETAILS_FORMAT = "❌ Invalid command format. Use: `!details <key>:<value>`"

INVALID_SEARCH_KEY = "❌ The key must not be empty."

VALUE_ADDED = '✅ Value successfully added for key "*{key}*":\n{value}'

DUPLICATE_VALUE = '❌ This value already exists for key "*{key}*".'

SAVE_ERROR = "❌ An error occurred while saving."

VALUE_REMOVED = '✅ Value "*{value}*" successfully removed for key "*{key}*"'

VALUE_NOT_FOUND = '❌ Value "*{value}*" not found for key "*{key}*"'

KEY_REMOVED = '✅ Key "*{key}*" and all its values successfully removed'

KEY_NOT_FOUND = '❌ Key "*{key}*" not found'

KEY_NOT_FOUND_SEARCH = (
    'No value found for key "*{key}*".\n\n'
    "To add a value, use the command:\n"
    "`!add {key}: <value>`"
)

SINGLE_VALUE = "*Key:* {key}\n*Value:* {value}"

MULTIPLE_VALUES = "*Key:* {key}\n*Values ({count}):*\n{lines}"

VALUE_DETAILS = (
    "*Key:* {key}\n"
    "*Value:* {value}\n"
    "*Added:* {created_at}\n"
    "*Author:* {created_by}"
)

MULTI_ADD_ADDED = "✅ Values added: {count}"
MULTI_ADD_DUPLICATES = "⚠️ Duplicates skipped: {count}"
MULTI_ADD_ERRORS = "❌ Errors: {count}"

UNKNOWN_DATE = "unknown"

HELP_TEXT = (
    "*📖 Glossary bot commands*\n\n"
    "*!add <key>:<value>*\n"
    "Adds a value for the given key.\n"
    "Example: `!add API:Application Programming Interface`\n\n"
    "*!multi-add*\n"
    "Adds several keys/values at once.\n"
    "Example:\n```\n!multi-add\n"
    "API:Application Programming Interface;\n"
    "REST:Representational State Transfer;\n```\n\n"
    "*!remove <key>*\n"
    "Removes the whole key with all its values.\n"
    "Example: `!remove API`\n\n"
    "*!remove <key>:<value>*\n"
    "Removes only one value of the key.\n"
    "Example: `!remove API:Application Programming Interface`\n\n"
    "*!details <key>:<value>*\n"
    "Shows when the value was added and by whom.\n"
    "Example: `!details API:Application Programming Interface`\n\n"
    "*!help*\n"
    "Shows this help.\n\n"
    "*Search*\n"
    "Send just a key (without the ! prefix) and the bot shows every value stored for it."
)


@dataclass(frozen=True)
class BotMessages:
    """
    Immutable table of command names and reply templates.
    Built once and handed to the dispatcher; never mutated at runtime.
    """
    command_prefix: str = COMMAND_PREFIX
    direct_room_kind: str = ROOM_TYPE_DIRECT
    commands: Tuple[str, ...] = COMMAND_ORDER

    invalid_add_format: str = INVALID_ADD_FORMAT
    invalid_multi_add_format: str = INVALID_MULTI_ADD_FORMAT
    invalid_remove_format: str = INVALID_REMOVE_FORMAT
    invalid_details_format: str = INVALID_DETAILS_FORMAT
    invalid_search_key: str = INVALID_SEARCH_KEY
    value_added: str = VALUE_ADDED
    duplicate_value: str = DUPLICATE_VALUE
    save_error: str = SAVE_ERROR
    value_removed: str = VALUE_REMOVED
    value_not_found: str = VALUE_NOT_FOUND
    key_removed: str = KEY_REMOVED
    key_not_found: str = KEY_NOT_FOUND
    key_not_found_search: str = KEY_NOT_FOUND_SEARCH
    single_value: str = SINGLE_VALUE
    multiple_values: str = MULTIPLE_VALUES
    value_details: str = VALUE_DETAILS
    multi_add_added: str = MULTI_ADD_ADDED
    multi_add_duplicates: str = MULTI_ADD_DUPLICATES
    multi_add_errors: str = MULTI_ADD_ERRORS
    unknown_date: str = UNKNOWN_DATE
    help_text: str = HELP_TEXT


DEFAULT_MESSAGES = BotMessages()
