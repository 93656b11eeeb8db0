"""py-cord cogs: slash commands and event listeners."""
