"""
Helpdesk - Discord help-section bot

Helpdesk turns a Discord channel into a question desk: members pick a category
from a persistent "Ask Here" prompt, describe their problem in a short form,
and receive a dedicated question thread. Staff close questions with a reason
and manage the list of categories with slash commands.

Core Components:

- **Category Registry**: Per-guild categories cached in memory and persisted to
  SQLite, with audit embeds for every change
- **Question Lifecycle**: Thread provisioning, persistence and closure of
  questions, plus the index of open question threads
- **Submission Workflow**: The select menu and modal flow that turns a category
  choice and a title into a question
- **Message Cache**: Named per-guild message slots so UI messages are edited in
  place across restarts instead of being posted again

Usage:
    from helpdesk.main import main
    main()
"""
