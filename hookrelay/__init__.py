"""
hookrelay — GitLab webhook to Discord relay.

Validates inbound webhooks, renders them as chat embeds and delivers them,
buffering while the chat connection is down.
"""

__version__ = "1.0.0"
