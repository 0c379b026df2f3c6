"""Custom log formatters for the Respondent Registry.

This module provides specialized formatters for logging, including PII redaction.
"""

import logging
import re
from typing import List, Tuple


class PIIRedactingFormatter(logging.Formatter):
    """Formatter that redacts Personally Identifiable Information from log messages.

    Applies regex-based pattern matching to the message part of each record
    to redact respondent email addresses, phone numbers and names. The
    timestamp and logger name are left untouched.

    Attributes:
        redact_pii: Whether to enable PII redaction
        patterns: List of (regex_pattern, replacement_text) tuples for redaction

    Example:
        >>> formatter = PIIRedactingFormatter(
        ...     fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        ...     redact_pii=True
        ... )
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(formatter)
    """

    def __init__(
        self,
        fmt: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt: str | None = None,
        redact_pii: bool = False,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.redact_pii = redact_pii

        # Emails first so the digits of an address are not taken for a phone
        self.patterns: List[Tuple[re.Pattern[str], str]] = [
            # user@example.com
            (re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"), "[EMAIL-REDACTED]"),
            # +10000000001, 0812-3456-7890, (555) 555 1234: ten or more digits
            (re.compile(r"(?<![\w-])\+?\(?(?:\d[\s().-]{0,2}){9,}\d(?![\w-])"), "[PHONE-REDACTED]"),
            # name="John Doe", name='Jane Smith', name=Bob
            (re.compile(r"name=(\"[^\"]*\"|'[^']*'|\S+)"), "name=[NAME-REDACTED]"),
            # "Respondent: John Doe"
            (re.compile(r"(Respondent|Name):\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)+)"),
             r"\1: [NAME-REDACTED]"),
        ]

    def redact(self, text: str) -> str:
        """Apply every redaction pattern to a piece of text."""
        for pattern, replacement in self.patterns:
            text = pattern.sub(replacement, text)
        return text

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with optional PII redaction."""
        if not self.redact_pii:
            return super().format(record)

        redacted = logging.makeLogRecord(record.__dict__)
        redacted.msg = self.redact(record.getMessage())
        redacted.args = None
        return super().format(redacted)
