# glossary_bot/base_utils.py


import logging
import re


logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s | %(levelname)s | %(name)s\n%(message)s\n"
)

logger = logging.getLogger("glossary_bot")

_PLACEHOLDER = re.compile(r'\{(\w+)\}')


class BaseUtils():

    # -----------------------
    # General Utils
    # -----------------------

    def unsafe_string_format(self, dest_string, print_unused_keys_report=True, **kwargs):
        """
        Formats a destination string by replacing placeholders with corresponding values from kwargs.
        Placeholders with no matching kwarg are left untouched and reported in the log.

        it works differently from the standard "format" method as instead of looking for all the potential keys, looks only for the keys as passed in kwargs.
        Substituted text is never re-scanned, so user supplied braces come out literally.
        """
        missing_keys = []

        def replacer(match):
            key = match.group(1)
            if key in kwargs:
                return str(kwargs[key])
            missing_keys.append(key)
            return match.group(0)

        result = _PLACEHOLDER.sub(replacer, dest_string)
        if missing_keys and print_unused_keys_report:
            logger.info(f"Missing keys within string-to-format in unsafe_string_format: {', '.join(missing_keys)}")
        return result
