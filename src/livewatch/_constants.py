"""Internal constants shared across the library."""

TOKEN_URL = "https://id.twitch.tv/oauth2/token"
HELIX_BASE_URL = "https://api.twitch.tv/helix"
CHANNEL_BASE_URL = "https://twitch.tv"
USER_AGENT = "livewatch/1"

#: Tokens are treated as expired this long before their real expiry.
TOKEN_SKEW_MARGIN_MS = 60_000

#: Helix accepts at most this many ``login``/``user_id`` values per request.
HELIX_BATCH_SIZE = 100

THUMBNAIL_WIDTH = 1280
THUMBNAIL_HEIGHT = 720

# ------------------------------------------------------------------
# Scheduler backoff (milliseconds)
# ------------------------------------------------------------------

BACKOFF_FLOOR_MS = 5_000
BACKOFF_CAP_MS = 300_000

OAUTH_FILENAME = "twitch_oauth.json"
STATE_FILENAME = "live_state.json"

FALLBACK_TEMPLATE: dict[str, str] = {"content": "{{display_name}} just went live: {{url}}"}
