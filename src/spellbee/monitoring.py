"""Monitoring configuration for the app."""
from prometheus_client import Counter, start_http_server

# Practice metrics
attempts_recorded = Counter(
    "spellbee_attempts_recorded_total",
    "Total number of word attempts recorded",
    ["grade_level", "outcome"],
)

reattempts = Counter(
    "spellbee_reattempts_total",
    "Total number of attempts that updated an earlier attempt of the same day",
    ["grade_level"],
)

# Word list metrics
word_list_errors = Counter(
    "spellbee_word_list_errors_total",
    "Total number of failed word list loads",
    ["error_type"],
)

# Storage metrics
storage_errors = Counter(
    "spellbee_storage_errors_total",
    "Total number of storage errors encountered",
    ["error_type"],
)

corrupt_records_skipped = Counter(
    "spellbee_corrupt_records_skipped_total",
    "Total number of inconsistent day records skipped",
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
