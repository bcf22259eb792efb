"""Constants for period_tracker."""

from logging import Logger, getLogger

LOGGER: Logger = getLogger(__package__)

DOMAIN = "period_tracker"
ATTRIBUTION = "Cycle data calculated locally"

STORAGE_KEY = "period-tracker-data"
STORAGE_VERSION = 1

CONF_PREDICTION_LENGTH = "prediction_length"

# Gaps between starts at or above this many days are treated as logging gaps
MAX_CYCLE_GAP_DAYS = 60
DEFAULT_PREDICTION_LENGTH = 5

EXPORT_FILENAME = "period-tracker-export-{date}.json"
