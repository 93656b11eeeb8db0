"""
Stateful services behind the Helpdesk commands and interactions.

- **cached_message_service.py**: named per-guild message slots (Message Cache)
- **category_service.py**: the per-guild Category Registry
- **question_service.py**: question creation, lookup, rename and closure
- **submission_service.py**: the select-menu and modal submission workflow
- **audit_log.py**: delivery of audit embeds to the guild's log channel

Each module exposes a class and a module-level instance wired with the shared
database connection and configuration; tests construct their own instances.
"""
