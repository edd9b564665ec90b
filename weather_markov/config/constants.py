"""Weather states, numerical tolerances, API settings and defaults."""

# =============================================================================
# Weather States
# =============================================================================

# Canonical state order: rows are the "from" state, columns the "to" state.
STATE_LABELS = ("Sunny", "Rainy", "Cloudy")

# =============================================================================
# Transition Matrix / Steady State
# =============================================================================

STOCHASTIC_TOLERANCE = 1e-6     # |row sum - 1.0| allowed per row
CONVERGENCE_TOLERANCE = 1e-8    # max |M_k - M_{k-1}| to stop power iteration
MAX_POWER_ITERATIONS = 1000     # hard cap on matrix self-multiplications

# =============================================================================
# Simulation
# =============================================================================

SECONDS_PER_DAY = 86_400
MIN_SIMULATION_DAYS = 1
MAX_SIMULATION_DAYS = 365        # upper bound enforced by host surfaces
DEFAULT_SIMULATION_DAYS = 30
DEFAULT_INITIAL_STATE = "Sunny"

# =============================================================================
# Condition Classification
# =============================================================================

# Checked in order; the first table with a matching substring wins.
RAINY_KEYWORDS = ("rain", "drizzle", "shower", "thunderstorm", "storm")
CLOUDY_KEYWORDS = ("cloud", "overcast", "fog", "mist", "haze")
SUNNY_KEYWORDS = ("clear", "sunny", "fair")

# Unrecognised descriptions fall back to this label.
DEFAULT_CONDITION_LABEL = "Cloudy"

# =============================================================================
# Calendar
# =============================================================================

EPOCH_ISO_DATE = "1970-01-01"

# =============================================================================
# WeatherAPI.com
# =============================================================================

WEATHER_API_BASE_URL = "https://api.weatherapi.com/v1"
WEATHER_API_HISTORY_ENDPOINT = "history.json"
WEATHER_API_KEY_ENV = "WEATHER_API_KEY"
WEATHER_API_BASE_URL_ENV = "WEATHER_API_BASE_URL"
HISTORY_WINDOW_DAYS = 365
REQUEST_TIMEOUT_SEC = 30.0

MAX_FETCH_ATTEMPTS = 3
RETRY_BASE_DELAY_SEC = 1.0       # 1s, 2s, 4s, ...
RETRY_MAX_DELAY_SEC = 30.0
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

DEFAULT_CITIES = ["Mumbai", "Delhi", "Bangalore", "Chennai", "Kolkata"]
DEFAULT_CITY = DEFAULT_CITIES[0]

# =============================================================================
# HTTP API
# =============================================================================

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8787
