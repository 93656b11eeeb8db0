"""Embed builders and Discord UI components (select menu, modal) used by the services."""
