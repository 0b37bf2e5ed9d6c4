"""
Content filter - keeps the assistant out of malware and intrusion requests
"""

import re
from dataclasses import dataclass
from typing import Optional

HARMFUL_PATTERNS = [
    re.compile(r"hack(ing|ed|er)?\s+(into|system|network)", re.IGNORECASE),
    re.compile(r"bypass\s+(security|authentication|firewall)", re.IGNORECASE),
    re.compile(r"malware|virus|trojan|ransomware", re.IGNORECASE),
    re.compile(r"sql\s+injection.*attack", re.IGNORECASE),
    re.compile(r"ddos|denial.of.service.*attack", re.IGNORECASE),
    re.compile(r"steal.*password|crack.*password", re.IGNORECASE),
    re.compile(r"phishing.*site|fake.*login", re.IGNORECASE),
    re.compile(r"keylogger|screen.*scraper", re.IGNORECASE),
]

WARNING_KEYWORDS = [
    "exploit", "vulnerability", "penetration", "backdoor",
    "rootkit", "payload", "shell code", "buffer overflow",
]

# Two or more warning keywords in one request count as harmful
WARNING_THRESHOLD = 2

_RESPONSE_REWRITES = [
    (re.compile(r"(?:here's how to|you can) hack", re.IGNORECASE), "I cannot help with hacking"),
    (re.compile(r"exploit.*vulnerability", re.IGNORECASE), "[security information removed]"),
    (re.compile(r"bypass.*security", re.IGNORECASE), "[security bypass information removed]"),
]


@dataclass
class FilterVerdict:
    """Result of screening a request"""
    harmful: bool
    reason: Optional[str] = None


class ContentFilter:
    """Pattern-based request screening and response scrubbing"""

    def is_harmful_request(self, text: str) -> FilterVerdict:
        for pattern in HARMFUL_PATTERNS:
            if pattern.search(text):
                return FilterVerdict(
                    harmful=True,
                    reason="Request appears to involve harmful or malicious activities",
                )

        lower = text.lower()
        warning_count = sum(1 for keyword in WARNING_KEYWORDS if keyword in lower)
        if warning_count >= WARNING_THRESHOLD:
            return FilterVerdict(
                harmful=True,
                reason="Request contains multiple security-related terms that suggest harmful intent",
            )

        return FilterVerdict(harmful=False)

    def filter_response(self, response: str) -> str:
        for pattern, replacement in _RESPONSE_REWRITES:
            response = pattern.sub(replacement, response)
        return response
