import os

from rssnix.inbox import InboxTracker


def test_reset_clears_previous_entries(tmp_path):
    inbox = InboxTracker(str(tmp_path))
    inbox.reset()
    (tmp_path / "new" / "stale").write_text("x", encoding="utf-8")

    inbox.reset()
    assert inbox.entries() == []
    assert (tmp_path / "new").is_dir()


def test_record_links_to_article(tmp_path):
    article = tmp_path / "hn" / "Title"
    article.parent.mkdir()
    article.write_text("body", encoding="utf-8")
    inbox = InboxTracker(str(tmp_path))
    inbox.reset()

    assert inbox.record("hn", "Title", str(article)) is True
    link = tmp_path / "new" / "Title"
    assert os.readlink(link) == str(article)
    assert inbox.entries() == ["Title"]


def test_record_replaces_existing_entry(tmp_path):
    first = tmp_path / "a" / "Same"
    second = tmp_path / "b" / "Same"
    for path in (first, second):
        path.parent.mkdir()
        path.write_text(path.parent.name, encoding="utf-8")
    inbox = InboxTracker(str(tmp_path))
    inbox.reset()

    inbox.record("a", "Same", str(first))
    inbox.record("b", "Same", str(second))
    assert os.readlink(tmp_path / "new" / "Same") == str(second)


def test_record_failure_is_not_raised(tmp_path):
    inbox = InboxTracker(str(tmp_path))
    assert inbox.record("hn", "Title", str(tmp_path / "hn" / "Title")) is False
    assert inbox.entries() == []
