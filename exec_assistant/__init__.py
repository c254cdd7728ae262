"""
Executive Assistant Slack Bot

A Slack slash-command webhook that enriches replies with live context from
Airtable and a GitHub KnowledgeBase repository.

Features:
- Slash command dispatch (/morning-focus, /evening-close, /vision-alignment, /weekly-review)
- Bounded-time provider fan-out with static fallbacks
- Durable JSON conversation log with serialized writes
"""

__version__ = "1.0.0"
