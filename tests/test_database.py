import sqlite3
import pytest
from duplicheck.database.ops import DBOperations, make_slug
from duplicheck.database.schema import init_schema
from duplicheck.exceptions import BatchPersistError, DatabaseError

def test_create_if_absent_is_location_keyed(db_ops, make_record):
    """Same (name, directory) is only stored once; same content elsewhere is stored again."""
    first = db_ops.create_if_absent(make_record(name="a.txt", directory="/src1"))
    again = db_ops.create_if_absent(make_record(name="a.txt", directory="/src1", fingerprint="0" * 64))
    elsewhere = db_ops.create_if_absent(make_record(name="a.txt", directory="/src2"))
    db_ops.conn.commit()

    assert first is not None
    assert again is None, "Known location must not be inserted twice"
    assert elsewhere is not None and elsewhere != first
    assert db_ops.count_files() == 2

def test_edited_file_is_not_updated(db_ops, make_record):
    db_ops.save_batch([make_record(fingerprint="a" * 64)])
    db_ops.save_batch([make_record(fingerprint="b" * 64)])

    assert db_ops.find_by_fingerprint("b" * 64) == []
    assert len(db_ops.find_by_fingerprint("a" * 64)) == 1

def test_save_batch_assigns_store_fields(db_ops, make_record):
    created = db_ops.save_batch([make_record(name=f"{i}.txt") for i in range(3)])
    assert created == 3

    stored = db_ops.find_by_fingerprint("f" * 64)
    assert [r.name for r in stored] == ["0.txt", "1.txt", "2.txt"]
    for rec in stored:
        assert rec.id is not None
        assert rec.created_at and rec.updated_at
        assert rec.has_preview is False

def test_save_batch_is_atomic(monkeypatch, db_ops, make_record):
    """A storage fault mid-batch leaves none of the batch visible."""
    original = DBOperations.create_if_absent
    calls = {"n": 0}

    def faulty(self, rec):
        calls["n"] += 1
        if calls["n"] == 3:
            raise sqlite3.OperationalError("disk I/O error")
        return original(self, rec)

    monkeypatch.setattr(DBOperations, "create_if_absent", faulty)

    batch = [make_record(name=f"{i}.txt") for i in range(5)]
    with pytest.raises(BatchPersistError) as exc:
        db_ops.save_batch(batch)

    assert exc.value.batch_size == 5
    assert db_ops.count_files() == 0

def test_failed_batch_does_not_block_next_batch(monkeypatch, db_ops, make_record):
    original = DBOperations.create_if_absent

    def reject_bad(self, rec):
        if rec.name == "bad.txt":
            raise sqlite3.IntegrityError("constraint failed")
        return original(self, rec)

    monkeypatch.setattr(DBOperations, "create_if_absent", reject_bad)

    with pytest.raises(BatchPersistError):
        db_ops.save_batch([make_record(name="ok1.txt"), make_record(name="bad.txt")])
    assert db_ops.save_batch([make_record(name="ok2.txt")]) == 1
    assert [r.name for r in db_ops.find_by_fingerprint("f" * 64)] == ["ok2.txt"]

def test_schema_rejects_empty_files(db_ops, make_record):
    with pytest.raises(BatchPersistError):
        db_ops.save_batch([make_record(size_bytes=0)])
    with pytest.raises(BatchPersistError):
        db_ops.save_batch([make_record(fingerprint="")])

def test_init_schema_is_idempotent(conn):
    init_schema(conn)
    init_schema(conn)
    cur = conn.cursor()
    cur.execute("SELECT COUNT(*) FROM schema_version")
    assert cur.fetchone()[0] == 1

def test_duplicate_queries(db_ops, make_record):
    db_ops.save_batch([
        make_record(name="a.txt", directory="/x", fingerprint="1" * 64),
        make_record(name="b.txt", directory="/y", fingerprint="1" * 64),
        make_record(name="c.txt", directory="/x", fingerprint="2" * 64),
        make_record(name="d.txt", directory="/z", fingerprint="0" * 64),
        make_record(name="e.txt", directory="/z", fingerprint="0" * 64),
        make_record(name="f.txt", directory="/z", fingerprint="0" * 64),
    ])

    dups = db_ops.find_duplicate_groups()
    assert [r.name for r in dups] == ["d.txt", "e.txt", "f.txt", "a.txt", "b.txt"]
    assert db_ops.count_duplicate_groups() == len(dups) == 5
    assert [r.name for r in db_ops.find_by_fingerprint("2" * 64)] == ["c.txt"]
    assert db_ops.find_by_fingerprint("9" * 64) == []

def test_pagination_query(db_ops, make_record):
    db_ops.save_batch([make_record(name=f"{i:02d}.txt") for i in range(7)])

    assert [r.name for r in db_ops.find_all_paginated(3, 1)] == ["00.txt", "01.txt", "02.txt"]
    assert [r.name for r in db_ops.find_all_paginated(3, 3)] == ["06.txt"]
    assert db_ops.find_all_paginated(3, 4) == []

def test_tags(db_ops, make_record):
    db_ops.save_batch([make_record()])
    file_id = db_ops.find_by_fingerprint("f" * 64)[0].id

    tag = db_ops.create_or_find_tag("  Holiday Photos ")
    same = db_ops.create_or_find_tag("  Holiday Photos ")
    assert tag.id == same.id
    assert tag.slug == "holiday-photos"

    db_ops.tag_file(file_id, tag.id)
    db_ops.tag_file(file_id, tag.id)
    assert [t.slug for t in db_ops.find_tags_for_file(file_id)] == ["holiday-photos"]

def test_make_slug():
    assert make_slug(" Tax Returns 2020") == "tax-returns-2020"

def test_schema_rejects_unknown_category(db_ops, make_record):
    with pytest.raises(BatchPersistError):
        db_ops.save_batch([make_record(category="music")])
    assert db_ops.count_files() == 0

def test_undecodable_name_fails_only_its_batch(db_ops, make_record):
    """Names carrying surrogate escapes cannot be bound; the batch fails cleanly."""
    with pytest.raises(BatchPersistError) as exc:
        db_ops.save_batch([make_record(name="ok.txt"), make_record(name="bad\udcff.txt")])

    assert exc.value.batch_size == 2
    assert isinstance(exc.value.cause, ValueError)
    assert not db_ops.conn.in_transaction
    assert db_ops.save_batch([make_record(name="next.txt")]) == 1
    assert [r.name for r in db_ops.find_by_fingerprint("f" * 64)] == ["next.txt"]

def test_transaction_refuses_pending_work(db_ops):
    db_ops.conn.execute(
        "INSERT INTO tags (name, slug, created_at, updated_at) VALUES ('t', 't', 'now', 'now')"
    )
    assert db_ops.conn.in_transaction

    with pytest.raises(DatabaseError):
        with db_ops.transaction():
            pass

    # The caller's own work is left for the caller to settle
    assert db_ops.conn.in_transaction
    db_ops.conn.rollback()
    assert db_ops.create_or_find_tag("t").id is not None

def test_read_snapshot_leaves_no_open_transaction(db_ops, make_record):
    db_ops.save_batch([make_record(name="a.txt"), make_record(name="b.txt", directory="/other")])

    with db_ops.read_snapshot():
        assert db_ops.conn.in_transaction
        assert db_ops.count_duplicate_groups() == len(db_ops.find_duplicate_groups()) == 2

    assert not db_ops.conn.in_transaction
    assert db_ops.save_batch([make_record(name="c.txt")]) == 1

def test_read_snapshot_refuses_pending_work(db_ops):
    db_ops.conn.execute(
        "INSERT INTO tags (name, slug, created_at, updated_at) VALUES ('t', 't', 'now', 'now')"
    )
    with pytest.raises(DatabaseError):
        with db_ops.read_snapshot():
            pass
    db_ops.conn.rollback()
