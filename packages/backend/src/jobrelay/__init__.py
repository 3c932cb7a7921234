"""JobRelay — real-time notification relay for a job board.

Tracks which users are online, routes job postings, application alerts
and direct messages to the right WebSocket connection, and persists
jobs and chat history in PostgreSQL.
"""

__version__ = "0.1.0"
