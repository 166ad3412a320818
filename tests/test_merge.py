from voltline.client.merge import CACHE_LIMIT, merge_notifications


def test_poll_with_duplicate_id_keeps_existing_entry(make_notification) -> None:
    a = make_notification("1", is_read=True)
    b = make_notification("2")
    c = make_notification("3", minutes=5)
    d = make_notification("1", minutes=6)

    result = merge_notifications([a, b], [c, d])

    assert [n.id for n in result.notifications] == ["3", "1", "2"]
    assert result.notifications[1] is a
    assert result.notifications[1].is_read is True
    assert result.new_unread == 1
    assert [n.id for n in result.added] == ["3"]


def test_merge_never_exceeds_cache_limit(make_notification) -> None:
    existing = [make_notification(f"old-{i}") for i in range(CACHE_LIMIT)]
    incoming = [make_notification(f"new-{i}", minutes=i + 1) for i in range(7)]

    result = merge_notifications(existing, incoming)

    ids = [n.id for n in result.notifications]
    assert len(ids) == CACHE_LIMIT
    assert len(set(ids)) == len(ids)
    assert ids[:7] == [f"new-{i}" for i in range(7)]
    assert ids[-1] == f"old-{CACHE_LIMIT - 8}"


def test_merge_collapses_duplicates_inside_incoming(make_notification) -> None:
    incoming = [make_notification("9"), make_notification("9", is_read=True)]

    result = merge_notifications([], incoming)

    assert [n.id for n in result.notifications] == ["9"]
    assert result.new_unread == 1


def test_merge_counts_only_unread_additions(make_notification) -> None:
    incoming = [make_notification("5", is_read=True), make_notification("6")]

    result = merge_notifications([make_notification("1")], incoming)

    assert result.new_unread == 1
    assert [n.id for n in result.notifications] == ["5", "6", "1"]


def test_merge_with_nothing_new_returns_existing_order(make_notification) -> None:
    existing = [make_notification("2"), make_notification("1")]

    result = merge_notifications(existing, [make_notification("1")])

    assert result.notifications == existing
    assert result.added == []
    assert result.new_unread == 0
