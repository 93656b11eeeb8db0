from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from helpdesk.datatypes.discord_datatypes import ChannelID, GuildID, UserID
from helpdesk.datatypes.question_datatypes import Category, Question
from helpdesk.errors import CategoryInUseError, ForumChannelNotConfiguredError, QuestionTitleError
from helpdesk.ui import embeds


def make_question(category, thread_id, minutes_ago):
    return Question(
        guild_id=GuildID(1),
        category_id=category.id,
        author_id=UserID(100),
        title=f"question {thread_id}",
        thread_id=ChannelID(thread_id),
        created_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
    )


def test_format_thread_name_fits_limit():
    assert embeds.format_thread_name("Python", "Short title") == "[Python] Short title"

    name = embeds.format_thread_name("Python", "y" * 200)
    assert len(name) == 100
    assert name == "[Python] " + "y" * 88 + "..."


def test_format_thread_name_exact_fit_is_not_cut():
    title = "z" * (100 - len("[Py] "))
    assert embeds.format_thread_name("Py", title) == "[Py] " + title


def test_board_groups_by_category_newest_first():
    python = Category(guild_id=GuildID(1), name="Python")
    rust = Category(guild_id=GuildID(1), name="Rust")
    questions = [make_question(python, 10 + i, minutes_ago=i) for i in range(12)]
    questions.append(make_question(rust, 99, minutes_ago=5))

    board = embeds.build_active_questions_board(questions, {python.id: python, rust.id: rust})

    assert board.startswith("__**13 Active Questions**__")
    assert board.index("**Python**") < board.index("**Rust**")
    # Only the ten newest Python questions are listed.
    assert "<#10>" in board and "<#19>" in board
    assert "<#20>" not in board and "<#21>" not in board
    assert board.index("<#10>") < board.index("<#11>")
    assert "<#99>" in board


def test_board_with_unknown_category():
    orphan = Category(guild_id=GuildID(1), name="Gone")
    board = embeds.build_active_questions_board([make_question(orphan, 1, 0)], {})
    assert "**Uncategorized**" in board
    assert board.startswith("__**1 Active Question**__")


def test_error_embed_titles():
    assert embeds.build_error_embed(QuestionTitleError("too short")).title == "Invalid input"
    assert embeds.build_error_embed(CategoryInUseError("X", 1)).title == "Category in use"
    assert embeds.build_error_embed(ForumChannelNotConfiguredError(1)).title == "Not configured"
    assert embeds.build_error_embed(LookupError("x")).title == "Not found"
    assert embeds.build_error_embed(RuntimeError("x")).title == "Something went wrong"


def test_modified_embed_shows_placeholders():
    category = Category(guild_id=GuildID(1), name="New", description=None)
    staff = SimpleNamespace(id=7, mention="<@7>")

    embed = embeds.build_category_modified_embed(category, staff, "Old", None)

    values = {field.name: field.value for field in embed.fields}
    assert values == {
        "Old Name": "Old",
        "New Name": "New",
        "Old Description": "<none>",
        "New Description": "<none>",
    }
