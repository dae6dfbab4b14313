from backend.schemas import TextBlock, TodoBlock
from dashboard.markup import build_greeting, build_note_card, build_task_label, greeting_for_hour

HOSTILE = "<script>alert(1)</script></div>"


def test_greeting_escapes_the_user_name():
    markup = build_greeting(HOSTILE, 9)
    assert markup.startswith("<div class='section-title'>Good morning, ")
    assert "<script>" not in markup
    assert "&lt;script&gt;alert(1)&lt;/script&gt;&lt;/div&gt;" in markup
    assert markup.count("</div>") == 1


def test_greeting_follows_the_hour():
    assert greeting_for_hour(0) == "Good morning"
    assert greeting_for_hour(12) == "Good afternoon"
    assert greeting_for_hour(18) == "Good evening"


def test_task_label_escapes_name_emoji_and_color():
    task = {"name": HOSTILE, "emoji": "<b>", "color": "red'><img src=x onerror=alert(1)>"}
    markup = build_task_label(task)
    assert "<script>" not in markup
    assert "<b>" not in markup
    assert "<img" not in markup
    assert "&#x27;" in markup
    assert markup.count("</div>") == 1


def test_task_label_for_a_plain_task():
    markup = build_task_label({"name": "Read", "emoji": "📚", "color": "#3b82f6"})
    assert "style='background:#3b82f6'" in markup
    assert markup.endswith("📚 Read</div>")


def test_note_card_escapes_title_and_preview():
    note = {"title": HOSTILE, "updatedAt": "2024-03-05T10:00:00+00:00"}
    blocks = [TextBlock(content="<img src=x onerror=alert(1)>"), TodoBlock(content="</div>", completed=True)]
    markup = build_note_card(note, blocks)
    assert "<script>" not in markup
    assert "<img" not in markup
    assert markup.count("</div>") == 3
    assert "2024-03-05 • 1/1 done" in markup


def test_note_card_for_an_empty_note():
    markup = build_note_card({"title": "Ideas", "updatedAt": "2024-03-05T10:00:00+00:00"}, [TextBlock()])
    assert "<b>Ideas</b>" in markup
    assert "<div class='preview'>Empty note</div>" in markup
