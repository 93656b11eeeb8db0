"""Repository layer: row-level CRUD for the Helpdesk tables, one class per table."""
from helpdesk.repositories.cached_message_repo import CachedMessageRepository
from helpdesk.repositories.category_repo import CategoryRepository
from helpdesk.repositories.question_repo import QuestionRepository

__all__ = [
    "CachedMessageRepository",
    "CategoryRepository",
    "QuestionRepository",
]
