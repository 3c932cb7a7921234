"""Real-time infrastructure — presence + WebSocket channel.

Learn: Three pieces cooperate for every targeted notification:
1. ConnectionManager assigns each WebSocket a connection id
2. A presence registry maps user identity (email) → connection id
3. The notification router resolves the recipient and unicasts

Broadcasts skip presence entirely: every open connection gets them.
"""
