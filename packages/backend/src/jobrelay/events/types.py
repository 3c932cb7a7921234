"""Real-time event names.

Learn: Centralizing event names as constants prevents typos and
makes it easy to discover the whole WebSocket vocabulary in one place.
Client and server share the "job-posted" name for the broadcast.
"""

# ─── Client → server ─────────────────────────────────────

REGISTER = "register"
JOB_POSTED = "job-posted"
APPLICATION_SUBMITTED = "application-submitted"
SEND_MESSAGE = "send-message"
PING = "ping"

# ─── Server → client ─────────────────────────────────────

APPLICATION_NOTIFICATION = "application-notification"
MESSAGE_RECEIVED = "message-received"
REGISTERED = "registered"
PONG = "pong"
ERROR = "error"
